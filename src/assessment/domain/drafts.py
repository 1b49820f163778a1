import uuid
from collections.abc import Callable
from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field, model_validator

from src.assessment.domain.models import Question, QuestionOption
from src.config import QuizConfig


def new_id() -> str:
    return str(uuid.uuid4())


# --- AI Output Contract ---
class OptionDraft(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)

    text: str = Field(min_length=1)
    is_correct: bool = Field(alias="isCorrect")


class QuestionDraft(BaseModel):
    """
    A question proposed by the AI generator.

    A draft only exists if it carries exactly 4 options with exactly one
    marked correct, so everything downstream may rely on that shape.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    text: str = Field(min_length=1)
    options: list[OptionDraft]

    @model_validator(mode="after")
    def _check_answer_shape(self) -> "QuestionDraft":
        expected = QuizConfig.OPTIONS_PER_QUESTION
        if len(self.options) != expected:
            raise ValueError(
                f"Question must have {expected} options (got {len(self.options)})"
            )
        correct = sum(1 for o in self.options if o.is_correct)
        if correct != 1:
            raise ValueError(
                f"Question must have exactly 1 correct answer (got {correct})"
            )
        return self


class GeneratedQuestionsPayload(BaseModel):
    """Top-level JSON object the generator prompt asks for."""

    questions: list[QuestionDraft]


# --- Generator Result ---
@dataclass(frozen=True)
class GeneratedQuestions:
    drafts: list[QuestionDraft]


@dataclass(frozen=True)
class MalformedOutput:
    reason: str


GeneratorResult = GeneratedQuestions | MalformedOutput


def build_question_from_draft(
    draft: QuestionDraft,
    topic: str,
    difficulty: str,
    id_factory: Callable[[], str] = new_id,
) -> Question:
    """
    Turns a validated AI draft into a pooled Question tagged with `topic`.
    Every question and option gets a fresh id.
    """
    options = [
        QuestionOption.create(id_factory(), option.text, option.is_correct)
        for option in draft.options
    ]
    return Question.create(id_factory(), draft.text, [topic], difficulty, options)

from collections.abc import Sequence
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from src.assessment.domain.models import Question
from src.learning.domain.models import RoadmapItem


class ClientDTO(BaseModel):
    """Base for structures that leave the trust boundary (camelCase JSON)."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="forbid",
    )

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


# --- Quiz (outbound) ---
class QuizOptionDTO(ClientDTO):
    # No correctness flag: answers are graded server-side
    id: str
    text: str


class QuizQuestionDTO(ClientDTO):
    id: str
    text: str
    options: list[QuizOptionDTO]


class QuizDTO(ClientDTO):
    roadmap_item_id: str
    title: str
    difficulty: str
    questions: list[QuizQuestionDTO]


# --- Grading (outbound) ---
class QuizResultDTO(ClientDTO):
    attempt_id: str
    roadmap_item_id: str
    score: float
    passed: bool
    correct_count: int
    total_questions: int


def to_quiz_dto(item: RoadmapItem, questions: Sequence[Question]) -> QuizDTO:
    return QuizDTO(
        roadmap_item_id=item.id,
        title=f"Quiz: {item.title}",
        difficulty=item.difficulty,
        questions=[
            QuizQuestionDTO(
                id=q.id,
                text=q.text,
                options=[QuizOptionDTO(id=o.id, text=o.text) for o in q.options],
            )
            for q in questions
        ],
    )

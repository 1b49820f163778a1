from collections.abc import Iterable
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, PrivateAttr

from src.config import QuizConfig
from src.shared.errors import ValidationError


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# --- Entities ---
class QuestionOption(BaseModel):
    """
    One answer choice. Owned by exactly one Question; lives and dies with it.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    text: str
    is_correct: bool

    @classmethod
    def create(cls, id: str, text: str, is_correct: bool) -> "QuestionOption":
        if not text.strip():
            raise ValidationError("QuestionOption text cannot be empty")
        return cls(id=id, text=text, is_correct=is_correct)

    @classmethod
    def reconstitute(cls, id: str, text: str, is_correct: bool) -> "QuestionOption":
        """Rehydrates a stored option. Storage is trusted: no validation."""
        return cls.model_construct(id=id, text=text, is_correct=is_correct)


class Question(BaseModel):
    """
    A pooled quiz question, reused across many quizzes.

    `tags` and `options` are tuples so callers can never mutate the entity
    through them. `usage_count` only moves through `increment_usage()`.
    Option multiplicity (4 options, 1 correct) is not checked here; see
    `QuestionDraft`.
    """

    id: str
    text: str
    tags: tuple[str, ...]
    difficulty: str
    options: tuple[QuestionOption, ...] = ()
    created_at: datetime
    updated_at: datetime

    _usage_count: int = PrivateAttr(default=0)

    @property
    def usage_count(self) -> int:
        return self._usage_count

    @classmethod
    def create(
        cls,
        id: str,
        text: str,
        tags: Iterable[str],
        difficulty: str,
        options: Iterable[QuestionOption],
    ) -> "Question":
        # Tags behave as a set; keep first-seen order for stable storage
        unique_tags = tuple(dict.fromkeys(tags))

        if not text.strip():
            raise ValidationError("Question text cannot be empty")
        if not unique_tags:
            raise ValidationError("Question must have at least one tag")
        if not difficulty.strip():
            raise ValidationError("Question difficulty cannot be empty")

        now = utcnow()
        return cls(
            id=id,
            text=text,
            tags=unique_tags,
            difficulty=difficulty,
            options=tuple(options),
            created_at=now,
            updated_at=now,
        )

    @classmethod
    def reconstitute(
        cls,
        id: str,
        text: str,
        tags: Iterable[str],
        difficulty: str,
        usage_count: int,
        options: Iterable[QuestionOption],
        created_at: datetime,
        updated_at: datetime,
    ) -> "Question":
        """Rehydrates a stored question. Storage is trusted: no validation."""
        question = cls.model_construct(
            id=id,
            text=text,
            tags=tuple(tags),
            difficulty=difficulty,
            options=tuple(options),
            created_at=created_at,
            updated_at=updated_at,
        )
        question._usage_count = usage_count
        return question

    def increment_usage(self) -> None:
        self._usage_count += 1
        self.updated_at = utcnow()

    def find_option(self, option_id: str) -> QuestionOption | None:
        return next((o for o in self.options if o.id == option_id), None)


class QuizAttempt(BaseModel):
    """A graded quiz submission for one roadmap item."""

    model_config = ConfigDict(frozen=True)

    id: str
    user_id: str
    roadmap_item_id: str
    score: float
    passed: bool
    created_at: datetime

    @classmethod
    def create(
        cls, id: str, user_id: str, roadmap_item_id: str, score: float
    ) -> "QuizAttempt":
        if score < 0 or score > 100:
            raise ValidationError("QuizAttempt score must be between 0 and 100")
        return cls(
            id=id,
            user_id=user_id,
            roadmap_item_id=roadmap_item_id,
            score=score,
            passed=score >= QuizConfig.PASSING_SCORE,
            created_at=utcnow(),
        )

    @classmethod
    def reconstitute(
        cls,
        id: str,
        user_id: str,
        roadmap_item_id: str,
        score: float,
        passed: bool,
        created_at: datetime,
    ) -> "QuizAttempt":
        return cls.model_construct(
            id=id,
            user_id=user_id,
            roadmap_item_id=roadmap_item_id,
            score=score,
            passed=passed,
            created_at=created_at,
        )

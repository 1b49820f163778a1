from collections.abc import Collection
from datetime import datetime
from typing import Any, cast

from postgrest.types import CountMethod

from src.assessment.domain.models import Question, QuestionOption, QuizAttempt
from src.assessment.domain.ports import IQuestionRepository, IQuizAttemptRepository
from src.shared.errors import PersistenceError
from src.shared.telemetry import Telemetry, measure_time
from supabase import Client, create_client

# Options are embedded through the question_options foreign key
_QUESTION_SELECT = (
    "id, text, tags, difficulty, usage_count, created_at, updated_at, "
    "question_options(id, position, text, is_correct)"
)


def _connect(url: str, key: str, telemetry: Telemetry) -> Client:
    try:
        return create_client(url, key)
    except Exception as e:
        telemetry.log_error("Failed to initialize Supabase client", e)
        raise


class SupabaseQuestionRepository(IQuestionRepository):
    def __init__(self, url: str, key: str, client: Client | None = None) -> None:
        self.telemetry = Telemetry("SupabaseQuestionRepository")
        self.client: Client = client or _connect(url, key, self.telemetry)

    def is_empty(self) -> bool:
        """Used by DataSeeder to decide whether to upload the seed file."""
        try:
            response = (
                self.client.table("questions")
                .select("id", count=cast(CountMethod, "exact"))
                .limit(1)
                .execute()
            )
        except Exception as e:
            self.telemetry.log_error("is_empty check failed", e)
            raise PersistenceError("Failed to inspect question pool") from e
        return (response.count or 0) == 0

    @measure_time("sb_find_questions_by_tags")
    def find_by_tags(self, tags: Collection[str], difficulty: str) -> list[Question]:
        if not tags:
            return []
        try:
            response = (
                self.client.table("questions")
                .select(_QUESTION_SELECT)
                .overlaps("tags", list(tags))
                .eq("difficulty", difficulty)
                .order("usage_count")
                .execute()
            )
        except Exception as e:
            self.telemetry.log_error("find_by_tags failed", e, tags=list(tags))
            raise PersistenceError("Failed to load question pool") from e

        data = cast(list[dict[str, Any]], response.data)
        return [self._to_domain(row) for row in data]

    @measure_time("sb_find_question")
    def find_by_id(self, question_id: str) -> Question | None:
        try:
            response = (
                self.client.table("questions")
                .select(_QUESTION_SELECT)
                .eq("id", question_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            self.telemetry.log_error(f"find_by_id failed for {question_id}", e)
            raise PersistenceError("Failed to load question") from e

        data = cast(list[dict[str, Any]], response.data)
        return self._to_domain(data[0]) if data else None

    @measure_time("sb_save_questions")
    def save_many(self, questions: list[Question]) -> None:
        """
        PostgREST cannot span tables in one transaction, so the batch goes
        through the `save_questions` function (see data/supabase_schema.sql),
        which upserts questions and replaces their options atomically.
        """
        if not questions:
            return

        payload: list[dict[str, Any]] = [
            {
                "id": q.id,
                "text": q.text,
                "tags": list(q.tags),
                "difficulty": q.difficulty,
                "usage_count": q.usage_count,
                "created_at": q.created_at.isoformat(),
                "updated_at": q.updated_at.isoformat(),
                "options": [
                    {
                        "id": o.id,
                        "position": position,
                        "text": o.text,
                        "is_correct": o.is_correct,
                    }
                    for position, o in enumerate(q.options)
                ],
            }
            for q in questions
        ]
        try:
            self.client.rpc("save_questions", {"p_questions": payload}).execute()
        except Exception as e:
            self.telemetry.log_error("save_many failed", e, count=len(questions))
            raise PersistenceError("Failed to save questions") from e

    @staticmethod
    def _to_domain(row: dict[str, Any]) -> Question:
        raw_options = sorted(
            row.get("question_options") or [], key=lambda o: int(o["position"])
        )
        return Question.reconstitute(
            id=str(row["id"]),
            text=str(row["text"]),
            tags=row.get("tags") or [],
            difficulty=str(row["difficulty"]),
            usage_count=int(row["usage_count"]),
            options=[
                QuestionOption.reconstitute(
                    str(o["id"]), str(o["text"]), bool(o["is_correct"])
                )
                for o in raw_options
            ],
            created_at=datetime.fromisoformat(str(row["created_at"])),
            updated_at=datetime.fromisoformat(str(row["updated_at"])),
        )


class SupabaseQuizAttemptRepository(IQuizAttemptRepository):
    def __init__(self, url: str, key: str, client: Client | None = None) -> None:
        self.telemetry = Telemetry("SupabaseQuizAttemptRepository")
        self.client: Client = client or _connect(url, key, self.telemetry)

    @measure_time("sb_save_attempt")
    def save(self, attempt: QuizAttempt) -> None:
        try:
            self.client.table("quiz_attempts").insert(
                attempt.model_dump(mode="json")
            ).execute()
        except Exception as e:
            self.telemetry.log_error(f"save_attempt failed for {attempt.user_id}", e)
            raise PersistenceError("Failed to save quiz attempt") from e

    def find_by_roadmap_item_id(self, roadmap_item_id: str) -> list[QuizAttempt]:
        return self._find("roadmap_item_id", roadmap_item_id)

    def find_by_user_id(self, user_id: str) -> list[QuizAttempt]:
        return self._find("user_id", user_id)

    def _find(self, column: str, value: str) -> list[QuizAttempt]:
        try:
            response = (
                self.client.table("quiz_attempts")
                .select("*")
                .eq(column, value)
                .order("created_at", desc=True)
                .execute()
            )
        except Exception as e:
            self.telemetry.log_error(f"Loading attempts by {column} failed", e)
            raise PersistenceError("Failed to load quiz attempts") from e

        data = cast(list[dict[str, Any]], response.data)
        return [
            QuizAttempt.reconstitute(
                id=str(row["id"]),
                user_id=str(row["user_id"]),
                roadmap_item_id=str(row["roadmap_item_id"]),
                score=float(row["score"]),
                passed=bool(row["passed"]),
                created_at=datetime.fromisoformat(str(row["created_at"])),
            )
            for row in data
        ]

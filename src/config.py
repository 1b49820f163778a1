import os
from enum import Enum
from typing import Final


class Difficulty(Enum):
    # Enum Member = ("stored value", "prompt guidance")
    BEGINNER = ("beginner", "Fundamental concepts, basic syntax, simple definitions")
    INTERMEDIATE = (
        "intermediate",
        "Practical application, common patterns, best practices",
    )
    ADVANCED = (
        "advanced",
        "Complex scenarios, performance considerations, edge cases, "
        "architectural decisions",
    )

    def __init__(self, label: str, guidance: str):
        self.label = label
        self.guidance = guidance

    @classmethod
    def from_label(cls, label: str) -> "Difficulty | None":
        """Returns the member for a stored difficulty string, or None."""
        normalized = label.strip().lower()
        for difficulty in cls:
            if difficulty.label == normalized:
                return difficulty
        return None

    @classmethod
    def all_labels(cls) -> list[str]:
        return [d.label for d in cls]


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class QuizConfig:
    # --- Infrastructure Switch ---
    USE_SQLITE: bool = _env_flag("QUIZ_USE_SQLITE", True)
    DB_PATH: str = os.getenv("QUIZ_DB_PATH", "data/quiz.db")
    SEED_FILE: str = os.getenv("QUIZ_SEED_FILE", "data/seed_questions.json")

    SUPABASE_URL: str | None = os.getenv("SUPABASE_URL")
    SUPABASE_KEY: str | None = os.getenv("SUPABASE_KEY")

    # --- Quiz Rules ---
    QUIZ_SIZE: Final[int] = 5
    MIN_POOL_SIZE: Final[int] = 10
    OPTIONS_PER_QUESTION: Final[int] = 4
    PASSING_SCORE = 70

    # --- Question Generator ---
    GENERATOR_MODEL: str = os.getenv("QUIZ_GENERATOR_MODEL", "gpt-4o-mini")
    # Higher temperature for diverse questions
    GENERATOR_TEMPERATURE = 0.8
    GENERATOR_TIMEOUT_SECONDS = float(os.getenv("QUIZ_GENERATOR_TIMEOUT", "60"))

    # --- Observability ---
    METRICS_PORT = int(os.getenv("QUIZ_METRICS_PORT", "8000"))
    SERVICE_NAME = "skillpath-quiz-engine"

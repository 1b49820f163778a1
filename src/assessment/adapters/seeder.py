import json
import os
from typing import Any

from src.assessment.domain.drafts import new_id
from src.assessment.domain.models import Question, QuestionOption
from src.assessment.domain.ports import IQuestionRepository
from src.learning.domain.models import Roadmap
from src.learning.domain.ports import IRoadmapRepository
from src.shared.telemetry import Telemetry

# --- Seeding Strategy ---
# The Seeder relies on the Repository to check for emptiness. IQuestionRepository
# does not declare `is_empty()`; both shipped adapters provide it, and a
# repository without it is always seeded (upserts make a re-seed harmless).
# ---------------------------------


def question_from_seed(entry: dict[str, Any]) -> Question:
    """Manually curated questions go through the validating factories."""
    options = [
        QuestionOption.create(
            opt.get("id") or new_id(), opt["text"], bool(opt["isCorrect"])
        )
        for opt in entry.get("options", [])
    ]
    return Question.create(
        entry.get("id") or new_id(),
        entry["text"],
        entry.get("tags", []),
        entry.get("difficulty", ""),
        options,
    )


class DataSeeder:
    """
    Responsible for populating the database with initial data.
    """

    def __init__(
        self,
        question_repo: IQuestionRepository,
        roadmap_repo: IRoadmapRepository | None = None,
    ) -> None:
        self.question_repo = question_repo
        self.roadmap_repo = roadmap_repo
        self.telemetry = Telemetry("DataSeeder")

    def seed_if_empty(self, seed_file: str) -> int:
        """
        Loads the seed file when the question bank is empty.
        Returns the number of questions stored.
        """
        is_empty = getattr(self.question_repo, "is_empty", None)
        if is_empty is not None and not is_empty():
            return 0

        if not os.path.exists(seed_file):
            self.telemetry.log_warning("Seed file NOT found", seed_file=seed_file)
            return 0

        self.telemetry.log_info("Question bank appears empty. Seeding...")
        with open(seed_file, encoding="utf-8") as f:
            data = json.load(f)

        try:
            if self.roadmap_repo is not None:
                for raw in data.get("roadmaps", []):
                    self.roadmap_repo.save(Roadmap.model_validate(raw))

            questions = [question_from_seed(q) for q in data.get("questions", [])]
            self.question_repo.save_many(questions)
        except Exception as e:
            self.telemetry.log_error("Seeding failed", e, seed_file=seed_file)
            raise

        self.telemetry.log_info(f"Seeded {len(questions)} questions.")
        return len(questions)

from src.config import Difficulty
from src.learning.domain.models import RoadmapItem
from src.learning.domain.ports import IRoadmapRepository
from src.shared.errors import InvalidOperationError, NotFoundError, ValidationError


def load_quiz_item(
    roadmap_repo: IRoadmapRepository, roadmap_id: str, roadmap_item_id: str
) -> RoadmapItem:
    """
    Resolves a roadmap item and checks it can be validated by a quiz.
    Project items are validated by URL submission instead.
    """
    roadmap = roadmap_repo.find_by_id(roadmap_id)
    if roadmap is None:
        raise NotFoundError("Roadmap not found")

    item = roadmap.find_item(roadmap_item_id)
    if item is None:
        raise NotFoundError("Roadmap item not found")

    if not item.is_quiz_eligible():
        raise InvalidOperationError(
            "Cannot generate quiz for PROJECT items. Use URL submission instead."
        )
    return item


def quiz_topic(item: RoadmapItem) -> str:
    """The tag a quiz for `item` is drawn from; blank topics fall back to the title."""
    return item.topic if item.topic.strip() else item.title


def quiz_difficulty(item: RoadmapItem) -> str:
    difficulty = Difficulty.from_label(item.difficulty)
    if difficulty is None:
        raise ValidationError(
            f"Unknown difficulty '{item.difficulty}' for roadmap item {item.id}. "
            f"Expected one of: {', '.join(Difficulty.all_labels())}"
        )
    return difficulty.label

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field


# --- Enums ---
class RoadmapItemType(str, Enum):
    THEORY = "theory"  # validated by quiz
    PROJECT = "project"  # validated by URL submission


class RoadmapItemStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


# --- Entities ---
class RoadmapItem(BaseModel):
    id: str
    title: str
    description: str = ""
    order: int = 1
    status: RoadmapItemStatus = RoadmapItemStatus.PENDING
    type: RoadmapItemType = RoadmapItemType.THEORY
    topic: str = ""
    difficulty: str = "beginner"
    submission_url: str | None = None

    def is_quiz_eligible(self) -> bool:
        return self.type == RoadmapItemType.THEORY


class Roadmap(BaseModel):
    id: str
    goal_id: str
    title: str
    items: list[RoadmapItem] = []
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def find_item(self, item_id: str) -> RoadmapItem | None:
        return next((i for i in self.items if i.id == item_id), None)

from abc import ABC, abstractmethod

from src.learning.domain.models import Roadmap


class IRoadmapRepository(ABC):
    @abstractmethod
    def find_by_id(self, roadmap_id: str) -> Roadmap | None:
        """Loads a roadmap together with its items."""
        pass

    @abstractmethod
    def save(self, roadmap: Roadmap) -> None:
        pass

from abc import ABC, abstractmethod
from collections.abc import Collection

from src.assessment.domain.drafts import GeneratorResult
from src.assessment.domain.models import Question, QuizAttempt


class IQuestionRepository(ABC):
    @abstractmethod
    def find_by_tags(self, tags: Collection[str], difficulty: str) -> list[Question]:
        """
        Questions sharing ANY of `tags` at exactly `difficulty`,
        least-used first.
        """
        pass

    @abstractmethod
    def save_many(self, questions: list[Question]) -> None:
        """
        Upserts every question and replaces its options wholesale.
        All-or-nothing across the batch.
        """
        pass

    @abstractmethod
    def find_by_id(self, question_id: str) -> Question | None:
        pass


class IQuestionGenerator(ABC):
    @abstractmethod
    def generate(self, topic: str, difficulty: str, count: int) -> GeneratorResult:
        """
        Proposes `count` new multiple-choice questions for a topic.
        Raises GenerationError when the backing service fails.
        """
        pass


class IQuizAttemptRepository(ABC):
    @abstractmethod
    def save(self, attempt: QuizAttempt) -> None:
        pass

    @abstractmethod
    def find_by_roadmap_item_id(self, roadmap_item_id: str) -> list[QuizAttempt]:
        pass

    @abstractmethod
    def find_by_user_id(self, user_id: str) -> list[QuizAttempt]:
        pass

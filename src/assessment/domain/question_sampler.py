import random
from collections.abc import Sequence

from src.assessment.domain.models import Question


class QuestionSampler:
    """
    Pure domain logic for picking the questions of one quiz.
    Draws without replacement: shuffle a copy of the pool, take a prefix.
    """

    def __init__(self, rng: random.Random | None = None) -> None:
        self.rng = rng or random.Random()

    def sample(self, questions: Sequence[Question], count: int) -> list[Question]:
        """
        Returns min(count, len(pool)) distinct questions in random order.

        Example:
            >>> sampler = QuestionSampler(random.Random(7))
            >>> picked = sampler.sample(pool_of_12, 5)
            >>> # 5 distinct questions, same 5 for the same seed
        """
        if count <= 0:
            return []

        # One entry per id, in case the pool was merged from two sources
        unique = list({q.id: q for q in questions}.values())

        # random.shuffle is an in-place Fisher-Yates
        self.rng.shuffle(unique)
        return unique[:count]

import random
from collections.abc import Callable

from src.assessment.application.dtos import QuizDTO, to_quiz_dto
from src.assessment.application.quiz_item import (
    load_quiz_item,
    quiz_difficulty,
    quiz_topic,
)
from src.assessment.domain.drafts import (
    MalformedOutput,
    build_question_from_draft,
    new_id,
)
from src.assessment.domain.models import Question
from src.assessment.domain.ports import IQuestionGenerator, IQuestionRepository
from src.assessment.domain.question_sampler import QuestionSampler
from src.config import QuizConfig
from src.learning.domain.ports import IRoadmapRepository
from src.shared.errors import GenerationError
from src.shared.telemetry import (
    QUESTIONS_GENERATED,
    QUIZZES_SERVED,
    Telemetry,
    measure_time,
)


class GenerateQuiz:
    """
    Builds a quiz for a THEORY roadmap item from the shared question pool:

    1. Looks up pooled questions matching the item's topic and difficulty.
    2. Backfills the pool through the AI generator when it holds fewer than
       MIN_POOL_SIZE questions, persisting the new questions first.
    3. Samples QUIZ_SIZE questions, bumps their usage counts and saves them.
    4. Returns a DTO that carries no correct-answer data.

    Two callers racing on a thin pool may both backfill it; the surplus
    questions simply stay in the pool.
    """

    def __init__(
        self,
        roadmap_repo: IRoadmapRepository,
        question_repo: IQuestionRepository,
        generator: IQuestionGenerator,
        rng: random.Random | None = None,
        id_factory: Callable[[], str] = new_id,
    ) -> None:
        self.roadmap_repo = roadmap_repo
        self.question_repo = question_repo
        self.generator = generator
        self.sampler = QuestionSampler(rng)
        self.id_factory = id_factory
        self.telemetry = Telemetry("GenerateQuiz")

    @measure_time("generate_quiz")
    def execute(self, roadmap_id: str, roadmap_item_id: str) -> QuizDTO:
        item = load_quiz_item(self.roadmap_repo, roadmap_id, roadmap_item_id)

        difficulty = quiz_difficulty(item)
        # A blank topic looks up nothing but still generates from the title
        tags = {item.topic} if item.topic.strip() else set()
        pool = self.question_repo.find_by_tags(tags, difficulty)

        backfilled = False
        if len(pool) < QuizConfig.MIN_POOL_SIZE:
            needed = QuizConfig.MIN_POOL_SIZE - len(pool)
            new_questions = self._generate_and_save(
                quiz_topic(item), difficulty, needed
            )
            pool = [*pool, *new_questions]
            backfilled = True

        selected = self.sampler.sample(pool, QuizConfig.QUIZ_SIZE)
        if not selected:
            raise GenerationError(
                f"No questions available for roadmap item {item.id}"
            )

        for question in selected:
            question.increment_usage()
        self.question_repo.save_many(selected)

        QUIZZES_SERVED.labels(
            difficulty=difficulty, backfilled=str(backfilled).lower()
        ).inc()
        self.telemetry.log_info(
            "Quiz Generated",
            roadmap_item_id=item.id,
            pool_size=len(pool),
            served=len(selected),
            backfilled=backfilled,
        )
        return to_quiz_dto(item, selected)

    def _generate_and_save(
        self, topic: str, difficulty: str, count: int
    ) -> list[Question]:
        self.telemetry.log_info(
            "Backfilling question pool", topic=topic, difficulty=difficulty, count=count
        )
        result = self.generator.generate(topic, difficulty, count)

        if isinstance(result, MalformedOutput):
            self.telemetry.log_warning(
                "Generator returned malformed output", topic=topic, reason=result.reason
            )
            raise GenerationError(
                f"Question generator returned malformed output: {result.reason}"
            )

        if len(result.drafts) < count:
            self.telemetry.log_warning(
                "Generator under-delivered",
                topic=topic,
                requested=count,
                received=len(result.drafts),
            )

        questions = [
            build_question_from_draft(draft, topic, difficulty, self.id_factory)
            for draft in result.drafts
        ]
        if not questions:
            return []

        # Must be durable before any of them can be served and counted
        self.question_repo.save_many(questions)
        QUESTIONS_GENERATED.labels(difficulty=difficulty).inc(len(questions))
        return questions

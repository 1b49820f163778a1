from collections.abc import Callable, Mapping

from src.assessment.application.dtos import QuizResultDTO
from src.assessment.application.quiz_item import (
    load_quiz_item,
    quiz_difficulty,
    quiz_topic,
)
from src.assessment.domain.drafts import new_id
from src.assessment.domain.models import QuizAttempt
from src.assessment.domain.ports import IQuestionRepository, IQuizAttemptRepository
from src.config import QuizConfig
from src.learning.domain.ports import IRoadmapRepository
from src.shared.errors import NotFoundError, ValidationError
from src.shared.telemetry import QUIZ_ATTEMPTS, Telemetry, measure_time


class SubmitQuiz:
    """
    Grades a submitted quiz against the stored answer keys and records the
    attempt. Only the aggregate score goes back to the client.

    Served quizzes are not stored, so answers are checked against what any
    quiz for the item could hold: questions with the item's topic tag and
    difficulty, and no fewer of them than a full quiz from the current pool.
    """

    def __init__(
        self,
        roadmap_repo: IRoadmapRepository,
        question_repo: IQuestionRepository,
        attempt_repo: IQuizAttemptRepository,
        id_factory: Callable[[], str] = new_id,
    ) -> None:
        self.roadmap_repo = roadmap_repo
        self.question_repo = question_repo
        self.attempt_repo = attempt_repo
        self.id_factory = id_factory
        self.telemetry = Telemetry("SubmitQuiz")

    @measure_time("submit_quiz")
    def execute(
        self,
        user_id: str,
        roadmap_id: str,
        roadmap_item_id: str,
        answers: Mapping[str, str],
    ) -> QuizResultDTO:
        """
        Args:
            answers: question id -> chosen option id
        """
        if not user_id.strip():
            raise ValidationError("User id cannot be empty")

        item = load_quiz_item(self.roadmap_repo, roadmap_id, roadmap_item_id)

        if not answers:
            raise ValidationError("At least one answer is required")

        topic = quiz_topic(item)
        difficulty = quiz_difficulty(item)

        correct = 0
        for question_id, option_id in answers.items():
            question = self.question_repo.find_by_id(question_id)
            if question is None:
                raise NotFoundError(f"Question not found: {question_id}")

            # Only questions this item's quiz could have served count
            if topic not in question.tags or question.difficulty != difficulty:
                raise ValidationError(
                    f"Question {question_id} is not part of the quiz for "
                    f"roadmap item {item.id}"
                )

            option = question.find_option(option_id)
            if option is None:
                raise ValidationError(
                    f"Option {option_id} does not belong to question {question_id}"
                )
            if option.is_correct:
                correct += 1

        pool_size = len(self.question_repo.find_by_tags({topic}, difficulty))
        required = min(QuizConfig.QUIZ_SIZE, pool_size)
        if len(answers) < required:
            raise ValidationError(
                f"Expected at least {required} answers, got {len(answers)}"
            )

        score = round(100 * correct / len(answers), 2)
        attempt = QuizAttempt.create(self.id_factory(), user_id, item.id, score)
        self.attempt_repo.save(attempt)

        QUIZ_ATTEMPTS.labels(passed=str(attempt.passed).lower()).inc()
        self.telemetry.log_info(
            "Quiz Graded",
            user_id=user_id,
            roadmap_item_id=item.id,
            score=score,
            passed=attempt.passed,
        )
        return QuizResultDTO(
            attempt_id=attempt.id,
            roadmap_item_id=item.id,
            score=attempt.score,
            passed=attempt.passed,
            correct_count=correct,
            total_questions=len(answers),
        )

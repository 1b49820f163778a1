import random

from src.assessment.adapters.openai_generator import OpenAIQuestionGenerator
from src.assessment.adapters.seeder import DataSeeder
from src.assessment.adapters.sqlite_repository import (
    SQLiteQuestionRepository,
    SQLiteQuizAttemptRepository,
)
from src.assessment.adapters.supabase_repository import (
    SupabaseQuestionRepository,
    SupabaseQuizAttemptRepository,
)
from src.assessment.application.generate_quiz import GenerateQuiz
from src.assessment.application.submit_quiz import SubmitQuiz
from src.assessment.domain.ports import (
    IQuestionGenerator,
    IQuestionRepository,
    IQuizAttemptRepository,
)
from src.assessment.presentation.responses import QuizController
from src.config import QuizConfig
from src.learning.adapters.sqlite_repository import SQLiteRoadmapRepository
from src.learning.adapters.supabase_repository import SupabaseRoadmapRepository
from src.learning.domain.ports import IRoadmapRepository
from src.shared.db_manager import DatabaseManager
from supabase import create_client


class AssessmentContainer:
    """
    Wires repositories, the question generator and the use cases.
    """

    def __init__(
        self,
        db_manager: DatabaseManager | None = None,
        generator: IQuestionGenerator | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.db_manager: DatabaseManager | None = None
        self.question_repo: IQuestionRepository
        self.attempt_repo: IQuizAttemptRepository
        self.roadmap_repo: IRoadmapRepository

        if QuizConfig.USE_SQLITE or db_manager is not None:
            self.db_manager = db_manager or DatabaseManager(QuizConfig.DB_PATH)
            self.question_repo = SQLiteQuestionRepository(self.db_manager)
            self.attempt_repo = SQLiteQuizAttemptRepository(self.db_manager)
            self.roadmap_repo = SQLiteRoadmapRepository(self.db_manager)
        else:
            url, key = QuizConfig.SUPABASE_URL, QuizConfig.SUPABASE_KEY
            if not url or not key:
                raise RuntimeError("SUPABASE_URL and SUPABASE_KEY must be set")
            client = create_client(url, key)
            self.question_repo = SupabaseQuestionRepository(url, key, client=client)
            self.attempt_repo = SupabaseQuizAttemptRepository(url, key, client=client)
            self.roadmap_repo = SupabaseRoadmapRepository(url, key, client=client)

        self.generator: IQuestionGenerator = generator or OpenAIQuestionGenerator()
        self._rng = rng

    def get_generate_quiz_use_case(self) -> GenerateQuiz:
        return GenerateQuiz(
            self.roadmap_repo, self.question_repo, self.generator, rng=self._rng
        )

    def get_submit_quiz_use_case(self) -> SubmitQuiz:
        return SubmitQuiz(self.roadmap_repo, self.question_repo, self.attempt_repo)

    def get_quiz_controller(self) -> QuizController:
        return QuizController(
            self.get_generate_quiz_use_case(), self.get_submit_quiz_use_case()
        )

    def get_seeder(self) -> DataSeeder:
        return DataSeeder(self.question_repo, self.roadmap_repo)

    def close(self) -> None:
        if self.db_manager is not None:
            self.db_manager.close()

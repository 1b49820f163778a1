import pytest

from src.assessment.adapters.sqlite_repository import (
    SQLiteQuestionRepository,
    SQLiteQuizAttemptRepository,
)
from src.learning.adapters.sqlite_repository import SQLiteRoadmapRepository
from src.learning.domain.models import Roadmap, RoadmapItem, RoadmapItemType
from src.shared.db_manager import DatabaseManager
from tests.factories import make_question


@pytest.fixture
def sample_question():
    return make_question("Q1")


@pytest.fixture
def theory_item():
    return RoadmapItem(
        id="item-hooks",
        title="React Hooks Fundamentals",
        order=1,
        type=RoadmapItemType.THEORY,
        topic="react-hooks",
        difficulty="beginner",
    )


@pytest.fixture
def project_item():
    return RoadmapItem(
        id="item-project",
        title="Build a Todo App",
        order=2,
        type=RoadmapItemType.PROJECT,
        topic="react-project",
        difficulty="beginner",
    )


@pytest.fixture
def sample_roadmap(theory_item, project_item):
    return Roadmap(
        id="rm-1",
        goal_id="goal-1",
        title="Frontend Developer",
        items=[theory_item, project_item],
    )


@pytest.fixture
def db_manager():
    """A clean in-memory database."""
    db = DatabaseManager(db_path=":memory:")
    yield db
    db.close()


@pytest.fixture
def question_repo(db_manager):
    return SQLiteQuestionRepository(db_manager)


@pytest.fixture
def roadmap_repo(db_manager):
    return SQLiteRoadmapRepository(db_manager)


@pytest.fixture
def attempt_repo(db_manager):
    return SQLiteQuizAttemptRepository(db_manager)

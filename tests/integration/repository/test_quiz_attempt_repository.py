from datetime import datetime, timedelta, timezone

from src.assessment.domain.models import QuizAttempt


def _attempt(id, user_id="user-1", item_id="item-hooks", score=80.0, minutes=0):
    return QuizAttempt.reconstitute(
        id=id,
        user_id=user_id,
        roadmap_item_id=item_id,
        score=score,
        passed=score >= 70,
        created_at=datetime(2024, 5, 1, tzinfo=timezone.utc) + timedelta(minutes=minutes),
    )


def test_save_and_find_by_user(attempt_repo):
    attempt_repo.save(QuizAttempt.create("a1", "user-1", "item-hooks", 60.0))

    (loaded,) = attempt_repo.find_by_user_id("user-1")

    assert loaded.id == "a1"
    assert loaded.score == 60.0
    assert loaded.passed is False


def test_newest_first(attempt_repo):
    attempt_repo.save(_attempt("old", minutes=0))
    attempt_repo.save(_attempt("new", minutes=5))

    assert [a.id for a in attempt_repo.find_by_roadmap_item_id("item-hooks")] == [
        "new",
        "old",
    ]


def test_filters_by_column(attempt_repo):
    attempt_repo.save(_attempt("a1", user_id="user-1", item_id="item-a"))
    attempt_repo.save(_attempt("a2", user_id="user-2", item_id="item-b"))

    assert [a.id for a in attempt_repo.find_by_user_id("user-2")] == ["a2"]
    assert [a.id for a in attempt_repo.find_by_roadmap_item_id("item-a")] == ["a1"]
    assert attempt_repo.find_by_user_id("nobody") == []

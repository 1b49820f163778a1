import random

from src.assessment.domain.question_sampler import QuestionSampler
from tests.factories import make_question


def _pool(n):
    return [make_question(f"Q{i}") for i in range(n)]


def test_returns_requested_number_of_distinct_questions():
    sampler = QuestionSampler(random.Random(1))

    picked = sampler.sample(_pool(12), 5)

    assert len(picked) == 5
    assert len({q.id for q in picked}) == 5


def test_small_pool_returns_everything():
    pool = _pool(3)
    picked = QuestionSampler(random.Random(1)).sample(pool, 5)

    assert {q.id for q in picked} == {q.id for q in pool}


def test_non_positive_count_returns_empty():
    sampler = QuestionSampler(random.Random(1))

    assert sampler.sample(_pool(4), 0) == []
    assert sampler.sample(_pool(4), -2) == []


def test_empty_pool_returns_empty():
    assert QuestionSampler().sample([], 5) == []


def test_duplicate_ids_are_drawn_once():
    q = make_question("Q1")
    picked = QuestionSampler(random.Random(3)).sample([q, q, make_question("Q2")], 5)

    assert sorted(p.id for p in picked) == ["Q1", "Q2"]


def test_same_seed_gives_same_selection():
    pool = _pool(20)

    first = QuestionSampler(random.Random(42)).sample(pool, 5)
    second = QuestionSampler(random.Random(42)).sample(pool, 5)

    assert [q.id for q in first] == [q.id for q in second]


def test_input_sequence_is_not_reordered():
    pool = _pool(10)
    original = [q.id for q in pool]

    QuestionSampler(random.Random(5)).sample(pool, 5)

    assert [q.id for q in pool] == original


def test_every_question_can_be_selected():
    """Across many draws no question is starved."""
    pool = _pool(10)
    sampler = QuestionSampler(random.Random(9))
    seen = set()

    for _ in range(200):
        seen.update(q.id for q in sampler.sample(pool, 5))

    assert seen == {q.id for q in pool}

import pytest

from src.config import Difficulty, QuizConfig, _env_flag


class TestDifficulty:
    def test_all_labels_in_order(self):
        assert Difficulty.all_labels() == ["beginner", "intermediate", "advanced"]

    def test_every_level_has_prompt_guidance(self):
        for difficulty in Difficulty:
            assert isinstance(difficulty.guidance, str)
            assert len(difficulty.guidance) > 0

    @pytest.mark.parametrize(
        "label, expected",
        [
            ("beginner", Difficulty.BEGINNER),
            ("  Advanced ", Difficulty.ADVANCED),
            ("INTERMEDIATE", Difficulty.INTERMEDIATE),
        ],
    )
    def test_from_label_normalizes(self, label, expected):
        assert Difficulty.from_label(label) is expected

    def test_from_label_unknown_returns_none(self):
        assert Difficulty.from_label("expert") is None


class TestQuizConfig:
    def test_quiz_fits_in_a_full_pool(self):
        """A pool at the backfill threshold can always fill a quiz."""
        assert 0 < QuizConfig.QUIZ_SIZE <= QuizConfig.MIN_POOL_SIZE

    def test_options_per_question(self):
        assert QuizConfig.OPTIONS_PER_QUESTION == 4

    def test_passing_score_is_a_percentage(self):
        assert 0 <= QuizConfig.PASSING_SCORE <= 100

    def test_generator_temperature_in_range(self):
        assert 0 <= QuizConfig.GENERATOR_TEMPERATURE <= 2


class TestEnvFlag:
    @pytest.mark.parametrize("raw", ["1", "true", "YES", " on "])
    def test_truthy_values(self, monkeypatch, raw):
        monkeypatch.setenv("QUIZ_TEST_FLAG", raw)
        assert _env_flag("QUIZ_TEST_FLAG", False) is True

    @pytest.mark.parametrize("raw", ["0", "false", "no", ""])
    def test_falsy_values(self, monkeypatch, raw):
        monkeypatch.setenv("QUIZ_TEST_FLAG", raw)
        assert _env_flag("QUIZ_TEST_FLAG", True) is False

    def test_missing_uses_default(self, monkeypatch):
        monkeypatch.delenv("QUIZ_TEST_FLAG", raising=False)
        assert _env_flag("QUIZ_TEST_FLAG", True) is True

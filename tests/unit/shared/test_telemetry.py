import logging
import pickle

import pytest
from prometheus_client import REGISTRY, Counter

from src.shared.telemetry import (
    QUIZ_ATTEMPTS,
    Telemetry,
    _register,
    correlation_id_ctx,
    measure_time,
)


class _Worker:
    def __init__(self):
        self.telemetry = Telemetry("TelemetryTestWorker")

    @measure_time("work")
    def work(self, value):
        return value * 2

    @measure_time("explode")
    def explode(self):
        raise RuntimeError("kaboom")


def _duration_count(method):
    return (
        REGISTRY.get_sample_value(
            "quiz_engine_method_duration_seconds_count",
            {"component": "_Worker", "method": method},
        )
        or 0
    )


class TestMeasureTime:
    def test_returns_result_and_records_duration(self, caplog):
        before = _duration_count("work")

        with caplog.at_level(logging.INFO, logger="TelemetryTestWorker"):
            assert _Worker().work(21) == 42

        assert _duration_count("work") == before + 1
        assert any("work done" in r.getMessage() for r in caplog.records)

    def test_failure_is_logged_and_reraised(self, caplog):
        before = _duration_count("explode")

        with caplog.at_level(logging.ERROR, logger="TelemetryTestWorker"):
            with pytest.raises(RuntimeError, match="kaboom"):
                _Worker().explode()

        assert _duration_count("explode") == before + 1
        failed = [r for r in caplog.records if "Failed: explode" in r.getMessage()]
        assert failed and failed[0].exc_info is not None

    def test_preserves_function_metadata(self):
        assert _Worker.work.__name__ == "work"


class TestTelemetry:
    def test_trace_id_is_included_in_messages(self, caplog):
        telemetry = Telemetry("TelemetryTestTrace")
        trace_id = Telemetry.start_trace()

        with caplog.at_level(logging.INFO, logger="TelemetryTestTrace"):
            telemetry.log_info("Quiz Generated", served=5)

        assert Telemetry.get_trace_id() == trace_id
        assert correlation_id_ctx.get() == trace_id
        assert f"[{trace_id}] Quiz Generated | {{'served': 5}}" in caplog.text

    def test_logger_is_configured_once(self):
        Telemetry("TelemetryTestOnce")
        Telemetry("TelemetryTestOnce")

        assert len(logging.getLogger("TelemetryTestOnce").handlers) == 1

    def test_pickle_roundtrip_restores_logger(self):
        telemetry = Telemetry("TelemetryTestPickle")

        restored = pickle.loads(pickle.dumps(telemetry))

        assert restored.component == "TelemetryTestPickle"
        assert restored.logger is logging.getLogger("TelemetryTestPickle")


def test_register_returns_existing_collector():
    duplicate = _register(
        lambda: Counter("quiz_engine_quiz_attempts", "dup", ["passed"]),
        "quiz_engine_quiz_attempts",
    )
    assert duplicate is QUIZ_ATTEMPTS

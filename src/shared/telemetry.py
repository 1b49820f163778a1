import logging
import sys
import time
import uuid
from collections.abc import Callable
from contextvars import ContextVar
from functools import wraps
from typing import Any, ParamSpec, TypeVar, cast

from prometheus_client import REGISTRY, Counter, Histogram

# --- Context for Correlation IDs ---
correlation_id_ctx: ContextVar[str] = ContextVar("correlation_id", default="system")

C = TypeVar("C", Counter, Histogram)


def _register(factory: Callable[[], C], name: str) -> C:
    """
    Creates a collector, or returns the one already registered under `name`.
    Module reloads (tests, CLI re-entry) would otherwise raise ValueError.
    """
    try:
        return factory()
    except ValueError:
        # prometheus_client registers counters without the _total suffix
        collector = REGISTRY._names_to_collectors.get(
            name
        ) or REGISTRY._names_to_collectors.get(f"{name}_total")
        return cast(C, collector)


# --- Prometheus Metric Definitions ---
METHOD_DURATION: Histogram = _register(
    lambda: Histogram(
        "quiz_engine_method_duration_seconds",
        "Time spent in method",
        ["component", "method"],
    ),
    "quiz_engine_method_duration_seconds",
)

QUESTIONS_GENERATED: Counter = _register(
    lambda: Counter(
        "quiz_engine_questions_generated",
        "Questions added to the pool by the AI generator",
        ["difficulty"],
    ),
    "quiz_engine_questions_generated",
)

QUIZZES_SERVED: Counter = _register(
    lambda: Counter(
        "quiz_engine_quizzes_served",
        "Quizzes returned to clients",
        ["difficulty", "backfilled"],
    ),
    "quiz_engine_quizzes_served",
)

QUIZ_ATTEMPTS: Counter = _register(
    lambda: Counter(
        "quiz_engine_quiz_attempts",
        "Graded quiz submissions",
        ["passed"],
    ),
    "quiz_engine_quiz_attempts",
)

# --- Type Definitions for Decorator ---
P = ParamSpec("P")
R = TypeVar("R")


def measure_time(metric_name: str) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """
    Decorator for timing methods + logging.
    Uses ParamSpec to preserve the signature of the decorated function.
    """

    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            start = time.perf_counter()

            # Used on instance methods: args[0] is 'self'
            self_obj: Any = args[0] if args else None

            component = self_obj.__class__.__name__ if self_obj else "Unknown"
            method = func.__name__
            telemetry = getattr(self_obj, "telemetry", None)

            try:
                result = func(*args, **kwargs)
            except Exception as e:
                duration = time.perf_counter() - start
                METHOD_DURATION.labels(component=component, method=method).observe(
                    duration
                )
                if telemetry:
                    telemetry.log_error(
                        f"Failed: {metric_name}",
                        e,
                        duration_ms=round(duration * 1000, 2),
                    )
                raise

            duration = time.perf_counter() - start
            METHOD_DURATION.labels(component=component, method=method).observe(
                duration
            )
            if telemetry:
                telemetry.log_info(
                    f"{metric_name} done", duration_ms=round(duration * 1000, 2)
                )
            return result

        return wrapper

    return decorator


class Telemetry:
    """
    Facade for Logs, Metrics, and Tracing.
    """

    def __init__(self, component_name: str) -> None:
        self.component = component_name
        self.logger: logging.Logger
        self._setup_logger()

    def _setup_logger(self) -> None:
        """Initializes the logger. Safe to call multiple times."""
        self.logger = logging.getLogger(self.component)

        if not self.logger.handlers:
            handler = logging.StreamHandler(sys.stdout)
            formatter = logging.Formatter(
                "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
            )
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)
            self.logger.setLevel(logging.INFO)

    def __getstate__(self) -> dict[str, Any]:
        """Pickling: Save everything EXCEPT the logger."""
        state = self.__dict__.copy()
        state.pop("logger", None)
        return state

    def __setstate__(self, state: dict[str, Any]) -> None:
        """Unpickling: Restore state and re-create logger."""
        self.__dict__.update(state)
        self._setup_logger()

    @staticmethod
    def start_trace() -> str:
        c_id = str(uuid.uuid4())[:8]
        correlation_id_ctx.set(c_id)
        return c_id

    @staticmethod
    def get_trace_id() -> str:
        return correlation_id_ctx.get()

    def _format(self, event: str, kwargs: dict[str, Any]) -> str:
        if kwargs:
            return f"[{self.get_trace_id()}] {event} | {kwargs}"
        return f"[{self.get_trace_id()}] {event}"

    def log_info(self, event: str, **kwargs: Any) -> None:
        self.logger.info(self._format(event, kwargs))

    def log_warning(self, event: str, **kwargs: Any) -> None:
        self.logger.warning(self._format(event, kwargs))

    def log_error(self, event: str, error: Exception, **kwargs: Any) -> None:
        msg = self._format(f"{event} | Error: {error}", kwargs)
        self.logger.error(msg, exc_info=error)

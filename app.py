import argparse
import json
import logging
import os
import sys

# --- OTel & Observability Imports ---
from opentelemetry import trace
from opentelemetry._logs import set_logger_provider
from opentelemetry.exporter.otlp.proto.grpc._log_exporter import OTLPLogExporter
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk._logs import LoggerProvider, LoggingHandler
from opentelemetry.sdk._logs.export import BatchLogRecordProcessor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

# --- Prometheus Import ---
from prometheus_client import start_http_server

# --- Application Imports ---
from src.assessment.presentation.responses import failure
from src.config import QuizConfig
from src.container import AssessmentContainer

logger = logging.getLogger("app")


# --- 1. Configure Observability ---
def configure_observability(metrics: bool) -> None:
    """
    Sends traces and logs over OTLP when the OTEL env vars are present,
    and optionally exposes Prometheus metrics.
    """
    endpoint = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT")
    headers = os.getenv("OTEL_EXPORTER_OTLP_HEADERS")

    if endpoint and headers:
        resource = Resource.create({"service.name": QuizConfig.SERVICE_NAME})

        # --- A. TRACING ---
        trace_provider = TracerProvider(resource=resource)
        trace_provider.add_span_processor(
            BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint, headers=headers))
        )
        trace.set_tracer_provider(trace_provider)

        # --- B. LOGGING (root logger -> OTLP) ---
        logger_provider = LoggerProvider(resource=resource)
        logger_provider.add_log_record_processor(
            BatchLogRecordProcessor(OTLPLogExporter(endpoint=endpoint, headers=headers))
        )
        set_logger_provider(logger_provider)
        handler = LoggingHandler(level=logging.INFO, logger_provider=logger_provider)
        logging.getLogger().addHandler(handler)
    else:
        logger.warning("OTEL env vars not set. Telemetry stays local.")

    # --- C. METRICS (Prometheus) ---
    if metrics:
        try:
            start_http_server(QuizConfig.METRICS_PORT)
            logger.info("Prometheus metrics on port %s", QuizConfig.METRICS_PORT)
        except OSError:
            logger.warning("Prometheus port %s already in use", QuizConfig.METRICS_PORT)


# --- 2. Commands ---
def _print(status: int, body: dict) -> int:
    print(json.dumps(body, indent=2, ensure_ascii=False))
    return 0 if status < 400 else 1


def cmd_seed(container: AssessmentContainer, args: argparse.Namespace) -> int:
    count = container.get_seeder().seed_if_empty(args.file)
    print(f"Seeded {count} questions.")
    return 0


def cmd_quiz(container: AssessmentContainer, args: argparse.Namespace) -> int:
    controller = container.get_quiz_controller()
    return _print(*controller.get_quiz(args.item_id, {"roadmapId": args.roadmap_id}))


def cmd_submit(container: AssessmentContainer, args: argparse.Namespace) -> int:
    try:
        answers = json.loads(args.answers)
    except json.JSONDecodeError as e:
        return _print(
            *failure(400, "VALIDATION_ERROR", f"Answers must be a JSON object: {e}")
        )

    controller = container.get_quiz_controller()
    body = {
        "roadmapId": args.roadmap_id,
        "userId": args.user_id,
        "answers": answers,
    }
    return _print(*controller.post_answers(args.item_id, body))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Skill-path quiz engine")
    parser.add_argument(
        "--metrics", action="store_true", help="Expose Prometheus metrics"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    seed = sub.add_parser("seed", help="Load roadmaps and questions into an empty bank")
    seed.add_argument("--file", default=QuizConfig.SEED_FILE)
    seed.set_defaults(handler=cmd_seed)

    quiz = sub.add_parser("quiz", help="Generate a quiz for a theory roadmap item")
    quiz.add_argument("roadmap_id")
    quiz.add_argument("item_id")
    quiz.set_defaults(handler=cmd_quiz)

    submit = sub.add_parser("submit", help="Grade answers for a roadmap item quiz")
    submit.add_argument("roadmap_id")
    submit.add_argument("item_id")
    submit.add_argument("user_id")
    submit.add_argument(
        "answers", help='JSON object: {"<question id>": "<option id>", ...}'
    )
    submit.set_defaults(handler=cmd_submit)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    # Basic console logging for local dev fallback
    logging.basicConfig(
        level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s"
    )
    configure_observability(metrics=args.metrics)

    container = AssessmentContainer()
    try:
        return args.handler(container, args)
    finally:
        container.close()


if __name__ == "__main__":
    sys.exit(main())

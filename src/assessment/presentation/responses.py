from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from src.assessment.application.dtos import ClientDTO
from src.assessment.application.generate_quiz import GenerateQuiz
from src.assessment.application.submit_quiz import SubmitQuiz
from src.shared.errors import (
    GenerationError,
    InvalidOperationError,
    NotFoundError,
    ValidationError,
)
from src.shared.telemetry import Telemetry

Response = tuple[int, dict[str, Any]]


# --- Request Schemas ---
class QuizRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)

    roadmap_id: str = Field(alias="roadmapId", min_length=1)


class SubmitQuizRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)

    roadmap_id: str = Field(alias="roadmapId", min_length=1)
    user_id: str = Field(alias="userId", min_length=1)
    answers: dict[str, str] = Field(min_length=1)


# --- Envelopes ---
def success(data: ClientDTO, status: int = 200) -> Response:
    return status, {"success": True, "data": data.to_payload()}


def failure(status: int, code: str, message: str) -> Response:
    return status, {"success": False, "error": {"code": code, "message": message}}


def error_response(error: Exception, telemetry: Telemetry) -> Response:
    """
    Maps an exception to (status, envelope). Messages of unexpected errors
    are logged, never returned.
    """
    if isinstance(error, PydanticValidationError):
        message = ", ".join(
            f"{'.'.join(str(p) for p in issue['loc'])}: {issue['msg']}"
            for issue in error.errors()
        )
        return failure(400, "VALIDATION_ERROR", message)
    if isinstance(error, NotFoundError):
        return failure(404, "NOT_FOUND", str(error))
    if isinstance(error, InvalidOperationError):
        return failure(400, "INVALID_ITEM_TYPE", str(error))
    if isinstance(error, ValidationError):
        return failure(400, "VALIDATION_ERROR", str(error))

    telemetry.log_error("Unexpected error while handling quiz request", error)
    if isinstance(error, GenerationError):
        return failure(
            500, "GENERATION_FAILED", "The quiz could not be generated right now"
        )
    return failure(
        500,
        "INTERNAL_SERVER_ERROR",
        "An unexpected error occurred while processing the quiz",
    )


class QuizController:
    """
    Framework-agnostic handlers for the quiz endpoints:

    GET  /roadmap/items/{itemId}/quiz?roadmapId=...
    POST /roadmap/items/{itemId}/quiz  {roadmapId, userId, answers}
    """

    def __init__(self, generate_quiz: GenerateQuiz, submit_quiz: SubmitQuiz) -> None:
        self.generate_quiz = generate_quiz
        self.submit_quiz = submit_quiz
        self.telemetry = Telemetry("QuizController")

    def get_quiz(self, item_id: str, query_params: Mapping[str, Any]) -> Response:
        Telemetry.start_trace()
        try:
            request = QuizRequest.model_validate(dict(query_params))
            quiz = self.generate_quiz.execute(request.roadmap_id, item_id)
        except Exception as e:
            return error_response(e, self.telemetry)
        return success(quiz)

    def post_answers(self, item_id: str, body: Mapping[str, Any]) -> Response:
        Telemetry.start_trace()
        try:
            request = SubmitQuizRequest.model_validate(dict(body))
            result = self.submit_quiz.execute(
                request.user_id, request.roadmap_id, item_id, request.answers
            )
        except Exception as e:
            return error_response(e, self.telemetry)
        return success(result, status=201)

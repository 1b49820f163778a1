import json
import re

from openai import OpenAI, OpenAIError
from pydantic import ValidationError as PydanticValidationError

from src.assessment.domain.drafts import (
    GeneratedQuestions,
    GeneratedQuestionsPayload,
    GeneratorResult,
    MalformedOutput,
)
from src.assessment.domain.ports import IQuestionGenerator
from src.config import Difficulty, QuizConfig
from src.shared.errors import GenerationError
from src.shared.telemetry import Telemetry, measure_time

_CODE_FENCE = re.compile(r"^```(?:json)?\s*\n?(.*?)\n?\s*```$", re.DOTALL)


def strip_code_fence(raw: str) -> str:
    """Models sometimes wrap JSON in a markdown block despite instructions."""
    trimmed = raw.strip()
    match = _CODE_FENCE.match(trimmed)
    return match.group(1).strip() if match else trimmed


def parse_questions_response(raw: str) -> GeneratorResult:
    """
    Trust boundary for AI output: anything that is not a list of
    4-option / 1-correct questions comes back as MalformedOutput.
    """
    try:
        data = json.loads(strip_code_fence(raw))
    except json.JSONDecodeError:
        return MalformedOutput("Failed to parse AI response as JSON")

    if not isinstance(data, dict) or not data.get("questions"):
        return MalformedOutput("No questions received from AI model")

    try:
        payload = GeneratedQuestionsPayload.model_validate(data)
    except PydanticValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first["loc"])
        return MalformedOutput(f"{location}: {first['msg']}")

    return GeneratedQuestions(drafts=payload.questions)


def build_prompt(topic: str, difficulty: str, count: int) -> str:
    """Constructs the instructions for generating pool questions."""
    guidelines = "\n".join(f'- "{d.label}": {d.guidance}' for d in Difficulty)
    options = QuizConfig.OPTIONS_PER_QUESTION

    return f"""
    You are an expert educational content creator specializing in technical assessments.
    Generate {count} high-quality multiple-choice quiz questions for the topic "{topic}" at "{difficulty}" difficulty level.

    CRITICAL REQUIREMENTS:
    - Each question must test practical understanding, not just memorization
    - Questions should be clear, unambiguous, and technically accurate
    - Each question must have EXACTLY {options} options
    - Each question must have EXACTLY 1 correct answer
    - Incorrect options should be plausible but clearly wrong to someone who understands the topic
    - Avoid trick questions or overly pedantic edge cases
    - Questions should be relevant to real-world application of the topic

    DIFFICULTY GUIDELINES:
{guidelines}

    OUTPUT FORMAT:
    Return ONLY a JSON object with this exact structure (no markdown, no code blocks):
    {{
        "questions": [
            {{
                "text": "Clear question text here?",
                "options": [
                    {{"text": "First option", "isCorrect": false}},
                    {{"text": "Second option", "isCorrect": true}},
                    {{"text": "Third option", "isCorrect": false}},
                    {{"text": "Fourth option", "isCorrect": false}}
                ]
            }}
        ]
    }}

    Generate exactly {count} questions now.
    """


class OpenAIQuestionGenerator(IQuestionGenerator):
    def __init__(
        self,
        client: OpenAI | None = None,
        model: str = QuizConfig.GENERATOR_MODEL,
        temperature: float = QuizConfig.GENERATOR_TEMPERATURE,
    ) -> None:
        self.telemetry = Telemetry("OpenAIQuestionGenerator")
        self._client = client
        self.model = model
        self.temperature = temperature

    @property
    def client(self) -> OpenAI:
        # Created on first use so callers that never generate need no API key
        if self._client is None:
            try:
                self._client = OpenAI(timeout=QuizConfig.GENERATOR_TIMEOUT_SECONDS)
            except OpenAIError as e:
                self.telemetry.log_error("Failed to initialize OpenAI client", e)
                raise GenerationError("Question generator is not configured") from e
        return self._client

    @measure_time("ai_generate_questions")
    def generate(self, topic: str, difficulty: str, count: int) -> GeneratorResult:
        prompt = build_prompt(topic, difficulty, count)

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=self.temperature,
                response_format={"type": "json_object"},
            )
        except OpenAIError as e:
            self.telemetry.log_error(
                "Question generation request failed", e, topic=topic, count=count
            )
            raise GenerationError("Question generator is unavailable") from e

        content = response.choices[0].message.content or ""
        result = parse_questions_response(content)

        if isinstance(result, MalformedOutput):
            # Raw output stays in the logs, never in the error message
            self.telemetry.log_warning(
                "Malformed AI response", reason=result.reason, raw=content[:500]
            )
        else:
            self.telemetry.log_info(
                "Questions generated",
                topic=topic,
                requested=count,
                received=len(result.drafts),
            )
        return result

# ==============================================================================
# ARCHITECTURE: UNIT TEST (ADAPTER LAYER)
# ------------------------------------------------------------------------------
# GOAL: Verify prompt construction and the parsing of raw AI output.
# CONSTRAINTS:
#   1. NETWORK: FORBIDDEN. The OpenAI client is mocked.
# ==============================================================================
import json
from unittest.mock import MagicMock

import pytest
from openai import OpenAIError

from src.assessment.adapters.openai_generator import (
    OpenAIQuestionGenerator,
    build_prompt,
    parse_questions_response,
    strip_code_fence,
)
from src.assessment.domain.drafts import GeneratedQuestions, MalformedOutput
from src.shared.errors import GenerationError


def _question(text="What does useMemo cache?", correct=1, options=4):
    return {
        "text": text,
        "options": [
            {"text": f"Choice {i}", "isCorrect": i == correct} for i in range(options)
        ],
    }


def _client_returning(content):
    client = MagicMock()
    message = MagicMock()
    message.content = content
    client.chat.completions.create.return_value.choices = [MagicMock(message=message)]
    return client


class TestStripCodeFence:
    def test_plain_json_untouched(self):
        assert strip_code_fence('  {"a": 1} ') == '{"a": 1}'

    def test_json_fence_removed(self):
        assert strip_code_fence('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_bare_fence_removed(self):
        assert strip_code_fence('```\n{"a": 1}\n```') == '{"a": 1}'


class TestParseQuestionsResponse:
    def test_valid_payload(self):
        raw = json.dumps({"questions": [_question(), _question("Second?")]})

        result = parse_questions_response(raw)

        assert isinstance(result, GeneratedQuestions)
        assert [d.text for d in result.drafts] == ["What does useMemo cache?", "Second?"]

    def test_fenced_payload(self):
        raw = "```json\n" + json.dumps({"questions": [_question()]}) + "\n```"
        assert isinstance(parse_questions_response(raw), GeneratedQuestions)

    def test_invalid_json(self):
        result = parse_questions_response("Sure! Here are your questions:")
        assert result == MalformedOutput("Failed to parse AI response as JSON")

    @pytest.mark.parametrize("raw", ['{"questions": []}', "{}", "[1, 2]"])
    def test_no_questions(self, raw):
        result = parse_questions_response(raw)
        assert result == MalformedOutput("No questions received from AI model")

    def test_wrong_option_count_is_malformed(self):
        raw = json.dumps({"questions": [_question(), _question(options=3)]})

        result = parse_questions_response(raw)

        assert isinstance(result, MalformedOutput)
        assert "questions.1" in result.reason
        assert "must have 4 options" in result.reason

    def test_two_correct_answers_is_malformed(self):
        bad = _question()
        bad["options"][0]["isCorrect"] = True

        result = parse_questions_response(json.dumps({"questions": [bad]}))

        assert isinstance(result, MalformedOutput)
        assert "exactly 1 correct answer" in result.reason


def test_prompt_names_topic_difficulty_and_count():
    prompt = build_prompt("react-hooks", "advanced", 7)

    assert '"react-hooks"' in prompt
    assert '"advanced" difficulty' in prompt
    assert "Generate exactly 7 questions" in prompt
    assert "EXACTLY 4 options" in prompt
    assert '"intermediate":' in prompt


class TestOpenAIQuestionGenerator:
    def test_requests_json_completion(self):
        client = _client_returning(json.dumps({"questions": [_question()]}))
        generator = OpenAIQuestionGenerator(
            client=client, model="test-model", temperature=0.5
        )

        result = generator.generate("react-hooks", "beginner", 1)

        assert isinstance(result, GeneratedQuestions)
        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "test-model"
        assert kwargs["temperature"] == 0.5
        assert kwargs["response_format"] == {"type": "json_object"}
        assert "react-hooks" in kwargs["messages"][0]["content"]

    def test_malformed_output_is_returned_not_raised(self):
        generator = OpenAIQuestionGenerator(client=_client_returning("not json"))

        result = generator.generate("react-hooks", "beginner", 3)

        assert isinstance(result, MalformedOutput)

    def test_empty_message_content_is_malformed(self):
        generator = OpenAIQuestionGenerator(client=_client_returning(None))

        result = generator.generate("react-hooks", "beginner", 3)

        assert result == MalformedOutput("Failed to parse AI response as JSON")

    def test_api_failure_becomes_generation_error(self):
        client = MagicMock()
        client.chat.completions.create.side_effect = OpenAIError("connection reset")
        generator = OpenAIQuestionGenerator(client=client)

        with pytest.raises(GenerationError, match="unavailable"):
            generator.generate("react-hooks", "beginner", 3)

    def test_missing_api_key_becomes_generation_error(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        generator = OpenAIQuestionGenerator()

        with pytest.raises(GenerationError, match="not configured"):
            generator.generate("react-hooks", "beginner", 3)

"""Tests for the httpx generation backends and payload parsing."""

import asyncio
import json

import httpx
import pytest

from autoapply.analysis.classifier import analyze_field
from autoapply.backends.base import (
    GenerationBackend,
    GenerationError,
    NEUTRAL_QUALITY_SCORE,
    build_user_message,
    parse_generation_payload,
)
from autoapply.backends.claude import ClaudeBackend
from autoapply.backends.grok import GrokBackend
from autoapply.models.context import GrantContext
from autoapply.orchestrator.narrative import build_generation_request

from conftest import FakeBackend, narrative_field

PAYLOAD = {"content": "We serve 40 families.", "quality_score": 88, "alternatives": ["We help 40 families."]}


@pytest.fixture
def request_for(user_context):
    field = analyze_field(narrative_field("plan", "Project Description", words=300))
    grant = GrantContext(title="Literacy Grant", funder="Hartwell Family Foundation")
    return build_generation_request(field, grant, user_context, custom_instructions="Mention tutoring.")


@pytest.fixture
def mock_http(monkeypatch):
    """Route every httpx.AsyncClient through a MockTransport with the given handler."""
    original = httpx.AsyncClient

    def install(handler):
        transport = httpx.MockTransport(handler)
        monkeypatch.setattr(httpx, "AsyncClient", lambda **kwargs: original(transport=transport, **kwargs))

    return install


def test_backends_satisfy_protocol():
    assert isinstance(ClaudeBackend(api_key="k"), GenerationBackend)
    assert isinstance(GrokBackend(api_key="k"), GenerationBackend)
    assert isinstance(FakeBackend(), GenerationBackend)


def test_user_message_includes_context(request_for):
    message = build_user_message(request_for)
    assert message.startswith("Question: Project Description")
    assert "Word limit: 300" in message
    assert "Mission-driven storytelling" in message
    assert "Riverbend Learning Lab" in message
    assert "Mention tutoring." in message


def test_parse_fenced_json():
    raw = "```json\n" + json.dumps(PAYLOAD) + "\n```"
    response = parse_generation_payload(raw)
    assert response.content == "We serve 40 families."
    assert response.quality_score == 88
    assert response.alternatives == ["We help 40 families."]


def test_parse_plain_text_falls_back():
    response = parse_generation_payload("Just some prose.")
    assert response.content == "Just some prose."
    assert response.quality_score == NEUTRAL_QUALITY_SCORE


def test_parse_clamps_quality_score():
    response = parse_generation_payload(json.dumps({"content": "x", "quality_score": 140}))
    assert response.quality_score == 100.0


def test_claude_backend_success(mock_http, request_for):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["body"] = json.loads(request.content)
        seen["key"] = request.headers["x-api-key"]
        return httpx.Response(200, json={"content": [{"type": "text", "text": json.dumps(PAYLOAD)}]})

    mock_http(handler)
    response = asyncio.run(ClaudeBackend(api_key="secret", model="test-model").generate(request_for))

    assert response.content == "We serve 40 families."
    assert response.quality_score == 88
    assert seen["key"] == "secret"
    assert seen["body"]["model"] == "test-model"
    assert "Project Description" in seen["body"]["messages"][0]["content"]


def test_claude_http_error_becomes_generation_error(mock_http, request_for):
    mock_http(lambda request: httpx.Response(500, json={"error": "boom"}))
    with pytest.raises(GenerationError):
        asyncio.run(ClaudeBackend(api_key="k").generate(request_for))


def test_claude_empty_content_is_an_error(mock_http, request_for):
    mock_http(lambda request: httpx.Response(200, json={"content": []}))
    with pytest.raises(GenerationError):
        asyncio.run(ClaudeBackend(api_key="k").generate(request_for))


def test_grok_backend_success(mock_http, request_for):
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.headers["authorization"] == "Bearer k"
        text = "```\n" + json.dumps(PAYLOAD) + "\n```"
        return httpx.Response(200, json={"choices": [{"message": {"content": text}}]})

    mock_http(handler)
    response = asyncio.run(GrokBackend(api_key="k").generate(request_for))
    assert response.content == "We serve 40 families."


def test_grok_unexpected_payload_is_an_error(mock_http, request_for):
    mock_http(lambda request: httpx.Response(200, json={"choices": []}))
    with pytest.raises(GenerationError):
        asyncio.run(GrokBackend(api_key="k").generate(request_for))


@pytest.mark.parametrize("literal", ["NaN", "Infinity", "-Infinity", "null", '"high"', "true"])
def test_unusable_quality_score_is_neutral(literal):
    raw = '{"content": "We served 1,200 students in 2024.", "quality_score": ' + literal + "}"
    response = parse_generation_payload(raw)
    assert response.content == "We served 1,200 students in 2024."
    assert response.quality_score == NEUTRAL_QUALITY_SCORE


@pytest.mark.parametrize("raw", [
    '{"content": null, "quality_score": 90}',
    '{"content": 42, "quality_score": 90}',
    '{"quality_score": 90}',
    "[]",
    '"We served families."',
    "```json\n{\"alternatives\": [\"x\"]}\n```",
])
def test_json_without_text_content_yields_empty_content(raw):
    assert parse_generation_payload(raw).content == ""


def test_non_string_list_items_are_dropped():
    raw = json.dumps({"content": "x", "alternatives": [None, 3, " Alt. "], "feedback": ["Be concrete.", {}]})
    response = parse_generation_payload(raw)
    assert response.alternatives == ["Alt."]
    assert response.feedback == ["Be concrete."]

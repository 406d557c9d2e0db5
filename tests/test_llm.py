"""
OpenRouter client: primary model first, fallback model on failure.
"""

import json

import httpx
import pytest

from tajiri.core.config import settings
from tajiri.services.llm import LLMUnavailableError, chat_completion

MESSAGES = [{"role": "user", "content": "Hello"}]


def completion(content):
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


@pytest.fixture(autouse=True)
def api_key(monkeypatch):
    monkeypatch.setattr(settings, "OPENROUTER_API_KEY", "test-key")


def mock_client(responses):
    """Client whose answers are chosen per requested model."""
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content)
        seen.append(payload)
        status, body = responses[payload["model"]]
        if isinstance(body, dict):
            return httpx.Response(status, json=body)
        return httpx.Response(status, text=body)

    return httpx.AsyncClient(transport=httpx.MockTransport(handler)), seen


@pytest.mark.asyncio
async def test_primary_model_answer():
    client, seen = mock_client({settings.PRIMARY_MODEL: (200, completion("Hi there"))})
    async with client:
        reply = await chat_completion(MESSAGES, client=client)

    assert reply == "Hi there"
    assert [p["model"] for p in seen] == [settings.PRIMARY_MODEL]
    assert "response_format" not in seen[0]


@pytest.mark.asyncio
async def test_falls_back_when_primary_fails():
    client, seen = mock_client({
        settings.PRIMARY_MODEL: (500, "upstream error"),
        settings.FALLBACK_MODEL: (200, completion('{"intent": "unknown"}')),
    })
    async with client:
        reply = await chat_completion(MESSAGES, json_mode=True, client=client)

    assert reply == '{"intent": "unknown"}'
    assert [p["model"] for p in seen] == [settings.PRIMARY_MODEL, settings.FALLBACK_MODEL]
    assert seen[1]["response_format"] == {"type": "json_object"}


@pytest.mark.asyncio
async def test_empty_primary_answer_counts_as_failure():
    client, seen = mock_client({
        settings.PRIMARY_MODEL: (200, completion("")),
        settings.FALLBACK_MODEL: (200, completion("Fallback answer")),
    })
    async with client:
        assert await chat_completion(MESSAGES, client=client) == "Fallback answer"
    assert len(seen) == 2


@pytest.mark.asyncio
async def test_both_models_failing_raises():
    client, _ = mock_client({
        settings.PRIMARY_MODEL: (429, "rate limited"),
        settings.FALLBACK_MODEL: (503, "unavailable"),
    })
    async with client:
        with pytest.raises(LLMUnavailableError):
            await chat_completion(MESSAGES, client=client)


@pytest.mark.asyncio
async def test_missing_api_key_raises(monkeypatch):
    monkeypatch.setattr(settings, "OPENROUTER_API_KEY", "")
    with pytest.raises(LLMUnavailableError):
        await chat_completion(MESSAGES)

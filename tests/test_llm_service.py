"""Tests for the LLM provider client"""

import asyncio

import pytest

from pika_backend.services import llm_service
from pika_backend.services.llm_service import LLMService


def make_config(provider="openai", **sections):
    config = {"provider": provider, "formatting": {"temperature": 0.2}}
    config.update(sections)
    return config


def test_missing_openai_key_raises_value_error():
    service = LLMService(make_config(openai={"apiKey": ""}))

    with pytest.raises(ValueError, match="OpenAI API key not configured"):
        asyncio.run(service.generate_response("hello"))


def test_unsupported_provider():
    service = LLMService(make_config(provider="carrier-pigeon"))

    with pytest.raises(ValueError, match="Unsupported provider"):
        asyncio.run(service.generate_response("hello"))


def test_openai_payload_json_mode():
    service = LLMService(make_config())
    messages = service._build_messages("note", "be tidy")

    payload = service._build_openai_payload("gpt-4.1-mini", messages, json_output=True)

    assert payload["messages"] == [
        {"role": "system", "content": "be tidy"},
        {"role": "user", "content": "note"},
    ]
    assert payload["response_format"] == {"type": "json_object"}
    assert payload["temperature"] == 0.2


def test_gemini_payload_carries_instructions():
    service = LLMService(make_config(provider="gemini"))

    payload = service._build_gemini_payload("note", "be tidy", json_output=True)

    assert payload["systemInstruction"] == {"parts": [{"text": "be tidy"}]}
    assert payload["generationConfig"]["responseMimeType"] == "application/json"
    assert payload["contents"][0]["parts"][0]["text"] == "note"


def test_openai_call_parses_choice(monkeypatch):
    service = LLMService(make_config(openai={"apiKey": "sk-test", "model": "gpt-test"}))
    captured = {}

    async def fake_request_json(url, payload, headers=None, provider="API"):
        captured.update(url=url, payload=payload, headers=headers)
        return {"choices": [{"message": {"content": "formatted"}}]}

    monkeypatch.setattr(service, "_request_json", fake_request_json)

    result = asyncio.run(service.generate_response("raw", "instructions", json_output=True))

    assert result == "formatted"
    assert captured["url"] == "https://api.openai.com/v1/chat/completions"
    assert captured["headers"]["Authorization"] == "Bearer sk-test"
    assert captured["payload"]["model"] == "gpt-test"


def test_gemini_response_parsing():
    service = LLMService(make_config(provider="gemini"))
    data = {"candidates": [{"content": {"parts": [{"text": "hi"}]}}]}

    assert service._parse_gemini_response(data) == "hi"
    with pytest.raises(Exception, match="No valid response"):
        service._parse_gemini_response({"candidates": []})


def test_vllm_config_optional_key():
    service = LLMService(make_config(provider="vllm", vllm={"endpoint": "http://gpu:9000"}))

    model, url, headers = service._get_vllm_config()

    assert url == "http://gpu:9000/v1/chat/completions"
    assert "Authorization" not in headers


def test_retry_on_overloaded_provider(monkeypatch):
    async def no_sleep(_seconds):
        return None

    monkeypatch.setattr(llm_service.asyncio, "sleep", no_sleep)
    service = LLMService(make_config())
    attempts = []

    async def flaky():
        attempts.append(1)
        if len(attempts) < 3:
            raise Exception("OpenAI API error (503): overloaded")
        return "ok"

    assert asyncio.run(service._retry_with_backoff(flaky, provider="OpenAI")) == "ok"
    assert len(attempts) == 3


def test_non_retryable_error_fails_fast(monkeypatch):
    async def no_sleep(_seconds):
        return None

    monkeypatch.setattr(llm_service.asyncio, "sleep", no_sleep)
    service = LLMService(make_config())
    attempts = []

    async def broken():
        attempts.append(1)
        raise Exception("OpenAI API error (401): bad key")

    with pytest.raises(Exception, match="401"):
        asyncio.run(service._retry_with_backoff(broken, provider="OpenAI"))
    assert len(attempts) == 1

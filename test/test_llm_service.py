"""
Tests for provider error mapping in LLMService (no network).
"""
from types import SimpleNamespace

import httpx
import openai
import pytest

from app.domain.errors import (
    InvalidCredentialError,
    ProviderRateLimitError,
    ProviderQuotaError,
    EmptyGenerationError,
    GenerationFailedError,
)
from app.utils.llm_service import LLMService

REQUEST = httpx.Request("POST", "https://api.cohere.ai/compatibility/v1/chat/completions")


def _client(create):
    return SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))


def _answer(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def _raiser(error):
    def create(**kwargs):
        raise error
    return create


def _status_error(cls, status, body=None):
    return cls("provider error", response=httpx.Response(status, request=REQUEST), body=body)


def test_returns_stripped_text_and_sends_prompt():
    calls = []

    def create(**kwargs):
        calls.append(kwargs)
        return _answer("  Hello client  ")

    service = LLMService(api_key="k", model="test-model", client=_client(create))
    assert service.generate_text("prompt text") == "Hello client"
    assert calls[0]["model"] == "test-model"
    assert calls[0]["messages"] == [{"role": "user", "content": "prompt text"}]
    assert calls[0]["temperature"] == 0.75


@pytest.mark.parametrize("error, expected, status", [
    (_status_error(openai.AuthenticationError, 401), InvalidCredentialError, 400),
    (_status_error(openai.RateLimitError, 429), ProviderRateLimitError, 429),
    (_status_error(openai.RateLimitError, 429, {"code": "insufficient_quota"}), ProviderQuotaError, 402),
    (_status_error(openai.APIStatusError, 402), ProviderQuotaError, 402),
    (_status_error(openai.InternalServerError, 500), GenerationFailedError, 502),
    (openai.APIConnectionError(request=REQUEST), GenerationFailedError, 502),
    (openai.APITimeoutError(request=REQUEST), GenerationFailedError, 502),
])
def test_provider_errors_map_to_app_errors(error, expected, status):
    service = LLMService(api_key="k", client=_client(_raiser(error)))
    with pytest.raises(expected) as exc:
        service.generate_text("prompt")
    assert exc.value.status_code == status


def test_invalid_key_message():
    service = LLMService(api_key="k", client=_client(_raiser(_status_error(openai.AuthenticationError, 401))))
    with pytest.raises(InvalidCredentialError) as exc:
        service.generate_text("prompt")
    assert exc.value.message == "Invalid Cohere API key."


@pytest.mark.parametrize("answer", [
    _answer(""),
    _answer(None),
    _answer("   "),
    SimpleNamespace(choices=[]),
    SimpleNamespace(choices=[SimpleNamespace(message=None)]),
])
def test_empty_answer_is_an_upstream_error(answer):
    service = LLMService(api_key="k", client=_client(lambda **kwargs: answer))
    with pytest.raises(EmptyGenerationError):
        service.generate_text("prompt")

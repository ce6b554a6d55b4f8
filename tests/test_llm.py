import asyncio

import httpx
import ollama
import pytest

from post_video.adapters import llm
from post_video.adapters.llm import LLMClient
from post_video.domain.errors import GenerationError, TransientProviderError
from post_video.domain.models import RetryPolicy


def make_client(outcomes):
    client = LLMClient(provider="gemini", retry_policy=RetryPolicy(max_attempts=3, delay_seconds=0))
    calls = []

    def fake_generate(prompt, model):
        calls.append(prompt)
        outcome = outcomes[len(calls) - 1]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    client._generate = fake_generate
    return client, calls


def test_transient_failures_are_retried():
    client, calls = make_client([TransientProviderError("503"), TransientProviderError("reset"), "ok"])

    assert asyncio.run(client.complete("prompt")) == "ok"
    assert len(calls) == 3


def test_gives_up_after_max_attempts():
    client, calls = make_client([TransientProviderError("503")] * 3)

    with pytest.raises(GenerationError) as exc:
        asyncio.run(client.complete("prompt"))
    assert len(calls) == 3
    assert exc.value.stage == "script"


def test_semantic_failures_are_not_retried():
    client, calls = make_client([GenerationError("bad request", stage="script"), "unused"])

    with pytest.raises(GenerationError):
        asyncio.run(client.complete("prompt"))
    assert len(calls) == 1


def test_missing_gemini_key_is_a_generation_error():
    client = LLMClient(provider="gemini")
    client.gemini_config["api_key"] = ""

    with pytest.raises(GenerationError):
        client._generate_gemini("prompt", None)


class FlakyOllamaClient:
    """Stands in for ollama.Client, replaying one outcome per generate call."""

    outcomes = []
    calls = 0

    def __init__(self, host=None, timeout=None):
        pass

    def generate(self, model, prompt, options=None):
        FlakyOllamaClient.calls += 1
        outcome = FlakyOllamaClient.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return {"response": outcome}


def ollama_client(monkeypatch, outcomes):
    FlakyOllamaClient.outcomes = list(outcomes)
    FlakyOllamaClient.calls = 0
    monkeypatch.setattr(llm.ollama, "Client", FlakyOllamaClient)
    return LLMClient(provider="ollama", retry_policy=RetryPolicy(max_attempts=3, delay_seconds=0))


def test_ollama_read_timeout_is_retried(monkeypatch):
    client = ollama_client(monkeypatch, [httpx.ReadTimeout("timed out"), "ok"])

    assert asyncio.run(client.complete("prompt")) == "ok"
    assert FlakyOllamaClient.calls == 2


def test_ollama_rate_limit_is_retried(monkeypatch):
    client = ollama_client(monkeypatch, [ollama.ResponseError("slow down", 429), "ok"])

    assert asyncio.run(client.complete("prompt")) == "ok"
    assert FlakyOllamaClient.calls == 2


def test_ollama_bad_request_is_not_retried(monkeypatch):
    client = ollama_client(monkeypatch, [ollama.ResponseError("model not found", 404), "unused"])

    with pytest.raises(GenerationError):
        asyncio.run(client.complete("prompt"))
    assert FlakyOllamaClient.calls == 1

"""
Generative-text client (ITextGenerator).
Gemini over REST or a local Ollama server, with a fixed-delay bounded retry on
transport failures only.
"""

import asyncio
from typing import Optional

import httpx
import ollama
import requests

from post_video import config
from post_video.domain.errors import GenerationError, TransientProviderError
from post_video.domain.models import RetryPolicy
from post_video.ports.interfaces import ITextGenerator

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/models"


class LLMClient(ITextGenerator):
    """Unified LLM client; the provider is fixed at construction."""

    def __init__(
        self,
        provider: Optional[str] = None,
        retry_policy: Optional[RetryPolicy] = None,
        temperature: float = 0.7,
        timeout: float = 60.0,
    ):
        self.provider = (provider or config.LLM_PROVIDER).lower()
        self.retry_policy = retry_policy or RetryPolicy(
            max_attempts=config.LLM_MAX_ATTEMPTS,
            delay_seconds=config.LLM_RETRY_DELAY,
        )
        self.temperature = temperature
        self.timeout = timeout

        self.gemini_config = {
            "model": config.GEMINI_MODEL,
            "api_key": config.GEMINI_API_KEY,
            "base_url": GEMINI_BASE_URL,
        }
        self.ollama_config = {
            "base_url": config.OLLAMA_BASE_URL,
            "model": config.OLLAMA_MODEL,
        }

    async def complete(self, prompt: str, model: Optional[str] = None) -> str:
        attempts = max(1, self.retry_policy.max_attempts)
        for attempt in range(1, attempts + 1):
            try:
                return await asyncio.to_thread(self._generate, prompt, model)
            except TransientProviderError as e:
                if attempt >= attempts:
                    print(f"  ❌ Final LLM attempt ({attempt}) failed: {e}")
                    raise GenerationError(
                        f"Failed to communicate with {self.provider} after {attempts} attempts: {e}",
                        stage="script",
                    ) from e
                print(f"  ⚠️  LLM attempt {attempt} failed, retrying after {self.retry_policy.delay_seconds}s...")
                await asyncio.sleep(self.retry_policy.delay_seconds)
        raise GenerationError("LLM retry loop exited without a result", stage="script")

    def _generate(self, prompt: str, model: Optional[str]) -> str:
        if self.provider == "ollama":
            return self._generate_ollama(prompt, model)
        return self._generate_gemini(prompt, model)

    def _generate_gemini(self, prompt: str, model: Optional[str]) -> str:
        """Generate using the Gemini REST API."""
        if not (self.gemini_config.get("api_key") or "").strip():
            raise GenerationError("GEMINI_API_KEY is not set", stage="script")
        url = f"{self.gemini_config['base_url']}/{model or self.gemini_config['model']}:generateContent"
        data = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": self.temperature,
                "maxOutputTokens": 8192,
            },
        }
        headers = {
            "x-goog-api-key": self.gemini_config["api_key"],
            "Content-Type": "application/json",
        }
        try:
            response = requests.post(url, headers=headers, json=data, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise TransientProviderError(f"Gemini request failed: {e}") from e

        if response.status_code >= 500 or response.status_code == 429:
            raise TransientProviderError(f"Gemini API returned status {response.status_code}")
        if response.status_code != 200:
            raise GenerationError(
                f"Gemini API returned status {response.status_code}: {response.text[:300]}",
                stage="script",
            )

        result = response.json()
        candidate = (result.get("candidates") or [{}])[0]
        parts = candidate.get("content", {}).get("parts", [])
        text = parts[0].get("text", "") if parts else ""
        if not text:
            finish_reason = candidate.get("finishReason", "UNKNOWN")
            raise GenerationError(f"Gemini returned an empty response (finishReason: {finish_reason})", stage="script")
        return text

    def _generate_ollama(self, prompt: str, model: Optional[str]) -> str:
        """Generate using Ollama."""
        client = ollama.Client(host=self.ollama_config["base_url"], timeout=self.timeout)
        try:
            response = client.generate(
                model=model or self.ollama_config["model"],
                prompt=prompt,
                options={"temperature": self.temperature},
            )
        except ollama.ResponseError as e:
            if e.status_code >= 500 or e.status_code == 429:
                raise TransientProviderError(f"Ollama error: {e}") from e
            raise GenerationError(f"Ollama error: {e}", stage="script") from e
        except (httpx.TransportError, ConnectionError, TimeoutError) as e:
            raise TransientProviderError(f"Ollama unreachable: {e}") from e
        return response.get("response", "")

"""Generative-text backends behind a single ``complete`` call."""

from __future__ import annotations

import logging
from typing import Optional

import requests
from google import genai
from google.genai import types as genai_types

from .config import GenerationConfig
from .errors import BackendUnavailable


logger = logging.getLogger(__name__)


class TextGenerationBackend:
    """Request/response text completion. Raises BackendUnavailable on any failure."""

    name = "base"

    def complete(self, system: str, prompt: str, temperature: float = 0.7, max_tokens: int = 800) -> str:
        raise NotImplementedError


class ChatCompletionBackend(TextGenerationBackend):
    """OpenAI-compatible ``/chat/completions`` client (DeepSeek by default)."""

    name = "deepseek"

    def __init__(
        self,
        api_key: str,
        model: str = "deepseek-chat",
        base_url: str = "https://api.deepseek.com/v1",
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def complete(self, system: str, prompt: str, temperature: float = 0.7, max_tokens: int = 800) -> str:
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }
        try:
            response = self.session.post(
                f"{self.base_url}/chat/completions",
                headers=headers,
                json=payload,
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as exc:
            raise BackendUnavailable(f"Chat completion request failed: {exc}") from exc
        except ValueError as exc:
            raise BackendUnavailable("Chat completion returned malformed JSON") from exc

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise BackendUnavailable(f"Unexpected chat completion response: {data!r:.200}") from exc
        if not isinstance(content, str) or not content.strip():
            raise BackendUnavailable("Chat completion returned empty content")
        return content.strip()


class GeminiBackend(TextGenerationBackend):
    """Google Gemini via the ``google-genai`` client."""

    name = "google"

    def __init__(self, api_key: str, model: str = "gemini-2.5-flash", client=None):
        self.model = model
        self.client = client or genai.Client(api_key=api_key)

    def complete(self, system: str, prompt: str, temperature: float = 0.7, max_tokens: int = 800) -> str:
        try:
            resp = self.client.models.generate_content(
                model=self.model,
                contents=prompt,
                config=genai_types.GenerateContentConfig(
                    system_instruction=system,
                    temperature=temperature,
                    max_output_tokens=max_tokens,
                ),
            )
        except Exception as exc:
            raise BackendUnavailable(f"Gemini request failed: {exc}") from exc

        text = getattr(resp, "text", None)
        if not text or not text.strip():
            raise BackendUnavailable("Gemini returned empty content")
        return text.strip()


class OfflineBackend(TextGenerationBackend):
    """Local stand-in with no generative model; callers use their fallbacks."""

    name = "offline"

    def complete(self, system: str, prompt: str, temperature: float = 0.7, max_tokens: int = 800) -> str:
        raise BackendUnavailable("Generative backend is disabled")


def build_backend(
    config: GenerationConfig,
    deepseek_api_key: Optional[str] = None,
    google_api_key: Optional[str] = None,
) -> TextGenerationBackend:
    if not config.enabled or config.provider == "offline":
        return OfflineBackend()

    if config.provider == "deepseek":
        if not deepseek_api_key:
            logger.warning("No DeepSeek API key configured; using offline fallbacks")
            return OfflineBackend()
        return ChatCompletionBackend(
            api_key=deepseek_api_key,
            model=config.model,
            base_url=config.base_url,
            timeout=config.timeout,
        )

    if config.provider == "google":
        if not google_api_key:
            logger.warning("No Gemini API key configured; using offline fallbacks")
            return OfflineBackend()
        return GeminiBackend(api_key=google_api_key, model=config.model)

    raise ValueError(f"Unknown generation provider: {config.provider}")

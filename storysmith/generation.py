"""Generation clients: chat completions and image generation over HTTP.

Stage code depends on two call shapes, not on a concrete client:

    TextGenerator:   async def __call__(self, stage: str, system: str, prompt: str) -> str
    ImageGenerator:  async def __call__(self, prompt: str) -> str   # image URL

Implementations:

    OpenAIClient       OpenAI-compatible HTTP backend. `client.chat` is a
                       TextGenerator, `client.image` an ImageGenerator.
    EchoText           returns the prompt unchanged (offline smoke tests).
    PlaceholderImages  returns the bundled sample artwork URL.

Every backend failure surfaces as GenerationError with a message fit for
display next to the item that failed.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Protocol

import httpx

from storysmith.story_state import PLACEHOLDER_PAGE_URL

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.openai.com"
DEFAULT_CHAT_MODEL = "gpt-4o"
DEFAULT_IMAGE_MODEL = "dall-e-3"
MISSING_KEY_MESSAGE = "Missing OPENAI_API_KEY - please set it in Settings or environment variable"


class TextGenerator(Protocol):
    async def __call__(self, stage: str, system: str, prompt: str) -> str: ...


class ImageGenerator(Protocol):
    async def __call__(self, prompt: str) -> str: ...


class GenerationError(RuntimeError):
    """Raised when a generation backend cannot be reached or returns an error."""


def resolve_api_key(explicit: str | None, config: dict[str, Any] | None = None) -> str:
    """Request key, then stored settings key, then OPENAI_API_KEY."""
    if explicit:
        return explicit
    stored = ((config or {}).get("api_keys") or {}).get("openai", "")
    return stored or os.getenv("OPENAI_API_KEY", "")


class OpenAIClient:
    """Async client for an OpenAI-compatible API.

    Args:
        api_key:      Bearer token. Required; an empty key fails every call.
        base_url:     Backend root, e.g. "https://api.openai.com".
        chat_model:   Model for /v1/chat/completions.
        image_model:  Model for /v1/images/generations.
        timeout:      HTTP timeout in seconds.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        chat_model: str = DEFAULT_CHAT_MODEL,
        image_model: str = DEFAULT_IMAGE_MODEL,
        timeout: float = 120.0,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._chat_model = chat_model
        self._image_model = image_model
        self._timeout = timeout

    @classmethod
    def from_config(cls, config: dict[str, Any], api_key: str | None = None) -> OpenAIClient:
        return cls(
            api_key=resolve_api_key(api_key, config),
            base_url=config.get("provider_url") or os.getenv("OPENAI_BASE_URL", DEFAULT_BASE_URL),
            chat_model=config.get("chat_model") or DEFAULT_CHAT_MODEL,
            image_model=config.get("image_model") or DEFAULT_IMAGE_MODEL,
        )

    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._api_key}",
        }

    async def _post(self, path: str, body: dict) -> dict:
        if not self._api_key:
            raise GenerationError(MISSING_KEY_MESSAGE)
        url = f"{self._base_url}{path}"
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(url, json=body, headers=self._headers())
                resp.raise_for_status()
        except httpx.ConnectError as e:
            raise GenerationError(f"Cannot connect to generation backend at {self._base_url}") from e
        except httpx.HTTPStatusError as e:
            raise GenerationError(
                f"Generation backend returned HTTP {e.response.status_code}"
            ) from e
        except httpx.TimeoutException as e:
            raise GenerationError(f"Generation backend timed out after {self._timeout}s") from e
        except httpx.HTTPError as e:
            raise GenerationError(f"Generation backend request failed: {e}") from e
        try:
            data = resp.json()
        except ValueError as e:
            raise GenerationError("Generation backend returned a non-JSON response") from e
        if not isinstance(data, dict):
            raise GenerationError("Unexpected response format from generation backend")
        return data

    async def chat(self, stage: str, system: str, prompt: str) -> str:
        body = {
            "model": self._chat_model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
        }
        logger.debug("chat stage=%s model=%s prompt_len=%d", stage, self._chat_model, len(prompt))
        data = await self._post("/v1/chat/completions", body)
        try:
            text = data["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError) as e:
            raise GenerationError("Unexpected response format from chat completion backend") from e
        logger.debug("chat response stage=%s len=%d", stage, len(text))
        return text

    async def image(self, prompt: str) -> str:
        body = {
            "model": self._image_model,
            "prompt": prompt,
            "n": 1,
            "size": "1024x1024",
            "quality": "standard",
        }
        logger.debug("image model=%s prompt_len=%d", self._image_model, len(prompt))
        data = await self._post("/v1/images/generations", body)
        try:
            url = data["data"][0]["url"]
        except (KeyError, IndexError, TypeError) as e:
            raise GenerationError("Unexpected response format from image backend") from e
        if not url:
            raise GenerationError("Unexpected response format from image backend")
        return url


class EchoText:
    """Returns the prompt as-is. No network calls."""

    async def __call__(self, stage: str, system: str, prompt: str) -> str:
        logger.debug("EchoText stage=%s prompt_len=%d", stage, len(prompt))
        return prompt


class PlaceholderImages:
    """Returns the bundled sample page for every prompt. No network calls."""

    def __init__(self, url: str = PLACEHOLDER_PAGE_URL) -> None:
        self._url = url

    async def __call__(self, prompt: str) -> str:
        return self._url

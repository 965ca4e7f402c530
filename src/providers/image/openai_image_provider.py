"""OpenAI image-generation provider adapter.

Wraps ``client.images.generate`` (DALL-E 3) to implement
:class:`IImageProvider`.  Images are requested as base64 so the bytes come
back in the same response and no second download is needed.
"""

from __future__ import annotations

import base64
import binascii

import openai
import structlog

from src.config.settings import Settings
from src.interfaces.image_provider import IImageProvider
from src.utils.errors import LLMError, RateLimitError

logger = structlog.get_logger(logger_name=__name__)


class OpenAIImageProvider(IImageProvider):
    """Image provider backed by the OpenAI images API."""

    def __init__(self, settings: Settings, client: openai.AsyncOpenAI | None = None) -> None:
        self._api_key = settings.openai_api_key
        self._client = client or openai.AsyncOpenAI(
            api_key=self._api_key,
            timeout=openai.Timeout(settings.ai_timeout_seconds, connect=5.0),
        )
        self._model = settings.openai_image_model or "dall-e-3"

    async def generate(self, prompt: str) -> bytes | None:
        """Generate a 1024x1024 image and return its PNG bytes."""
        try:
            response = await self._client.images.generate(
                model=self._model,
                prompt=prompt,
                n=1,
                size="1024x1024",
                quality="standard",
                style="natural",
                response_format="b64_json",
            )
        except openai.RateLimitError as exc:
            raise RateLimitError(
                message=f"Image generation rate limit: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        except openai.APIError as exc:
            raise LLMError(
                message=f"Image generation API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        payload = response.data[0].b64_json if response.data else None
        if not payload:
            logger.warning("openai_image_empty_response", model=self._model)
            return None

        try:
            image = base64.b64decode(payload)
        except (binascii.Error, ValueError) as exc:
            raise LLMError(
                message=f"Image payload is not valid base64: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.info("openai_image_generated", model=self._model, size_bytes=len(image))
        return image

    def is_available(self) -> bool:
        return bool(self._api_key)

    def get_provider_name(self) -> str:
        return "openai_image"

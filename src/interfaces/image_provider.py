"""Abstract base classes for image generation and image storage.

Article enrichment produces an illustrative image: an
:class:`IImageProvider` turns a prompt into PNG bytes and an
:class:`IImageStore` persists the bytes and returns the reference that is
saved on the Article.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementation: OpenAIImageProvider (src/providers/image/)
class IImageProvider(ABC):
    """Contract for image-generation services."""

    @abstractmethod
    async def generate(self, prompt: str) -> bytes | None:
        """Generate an image for *prompt*.

        Returns
        -------
        bytes or None
            PNG bytes, or ``None`` if the service returned no image.

        Raises
        ------
        src.utils.errors.LLMError
            If the API call fails.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this provider."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if credentials are configured."""


# Concrete implementation: LocalImageStore (src/providers/image/)
class IImageStore(ABC):
    """Contract for blob storage of generated images."""

    @abstractmethod
    async def put(self, name: str, data: bytes, content_type: str = "image/png") -> str:
        """Persist *data* under *name* and return a reference to it.

        Raises
        ------
        src.utils.errors.StorageError
            If the write fails.
        """

"""Image generation and storage providers.

    - OpenAIImageProvider - DALL-E 3 images returned as base64 PNG bytes
    - LocalImageStore     - writes the bytes below ``settings.image_dir``
"""

from src.providers.image.local_image_store import LocalImageStore
from src.providers.image.openai_image_provider import OpenAIImageProvider

__all__ = ["LocalImageStore", "OpenAIImageProvider"]

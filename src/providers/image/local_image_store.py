"""Filesystem-backed image store.

Writes generated images under a configured directory and returns the path
as the reference stored on the Article.  File writes run in a worker
thread via ``asyncio.to_thread`` so the event loop is never blocked.
"""

from __future__ import annotations

import asyncio
import re
from pathlib import Path

import structlog

from src.interfaces.image_provider import IImageStore
from src.utils.errors import StorageError

logger = structlog.get_logger(logger_name=__name__)

# Anything outside this set is replaced so names are safe on every filesystem.
_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")


class LocalImageStore(IImageStore):
    """Store images as files below *base_dir*."""

    def __init__(self, base_dir: str | Path) -> None:
        self._base_dir = Path(base_dir)

    async def put(self, name: str, data: bytes, content_type: str = "image/png") -> str:
        """Write *data* to ``base_dir/name`` and return the file path."""
        # "/" separates sub-directories; each segment is sanitised on its own.
        segments = [_UNSAFE_CHARS.sub("_", part).strip("._") for part in name.split("/")]
        segments = [s for s in segments if s] or ["image"]
        target = self._base_dir.joinpath(*segments)

        try:
            await asyncio.to_thread(self._write, target, data)
        except OSError as exc:
            raise StorageError(
                message=f"Failed to write image {target}: {exc}",
                provider_name="local_image_store",
            ) from exc

        logger.info(
            "image_stored",
            path=str(target),
            size_bytes=len(data),
            content_type=content_type,
        )
        return str(target)

    @staticmethod
    def _write(target: Path, data: bytes) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)

"""Chunk, embed and store uploaded reference documents.

Pipeline stages: **normalise -> chunk -> embed -> store document and chunks**.
The document row and its chunks are written in one transaction, so a
failed insert never leaves a document without chunks.

Embedding failures do not fail the upload: a chunk whose embedding call
fails is stored with ``embedding=None`` and picked up later by
:class:`EmbeddingBackfillService`.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

import structlog

from src.models.news import Document, DocumentChunk
from src.services.ingestion.chunker import TextChunker
from src.utils.concurrency import RateLimitedRunner
from src.utils.errors import NewsPulseError, ValidationError
from src.utils.text_normalizer import normalize_document_text

if TYPE_CHECKING:
    from src.interfaces.embedding_provider import IEmbeddingProvider
    from src.interfaces.news_store import INewsStore

logger = structlog.get_logger(logger_name=__name__)


class DocumentIndexingService:
    """Indexes a :class:`Document` for retrieval.

    Parameters
    ----------
    store:
        Receives the document row and its chunks.
    chunker:
        Splits normalised text into overlapping windows.
    runner:
        Spaces out embedding calls.
    embedding_provider:
        Optional; without it documents and chunks are stored unembedded.
    """

    def __init__(
        self,
        store: INewsStore,
        chunker: TextChunker,
        runner: RateLimitedRunner,
        embedding_provider: IEmbeddingProvider | None = None,
    ) -> None:
        self._store = store
        self._chunker = chunker
        self._runner = runner
        self._embedder = embedding_provider

    async def index_document(self, document: Document) -> tuple[Document, list[DocumentChunk]]:
        """Store *document* and its chunks; return the stored records.

        Raises
        ------
        ValidationError
            If the document has no text after normalisation.
        StorageError
            If the insert fails; nothing is stored in that case.
        """
        start = time.monotonic()
        content = normalize_document_text(document.content)
        if not content:
            raise ValidationError(f"Document '{document.title}' has no text content")

        # The whole-document embedding is computed from the opening window only.
        doc_embedding = await self._embed(content[: self._chunker.max_chunk_size], label="document")

        chunks: list[tuple[str, list[float] | None]] = []
        for index, text in enumerate(self._chunker.chunk(content)):
            chunks.append((text, await self._embed(text, label="chunk", chunk_index=index)))

        stored_doc, stored_chunks = await self._store.insert_document_with_chunks(
            document.model_copy(update={"content": content, "embedding": doc_embedding}),
            chunks,
        )
        logger.info(
            "document_indexed",
            document_id=stored_doc.id,
            title=stored_doc.title,
            chunks=len(stored_chunks),
            embedded_chunks=sum(1 for c in stored_chunks if c.embedding is not None),
            elapsed_s=round(time.monotonic() - start, 2),
        )
        return stored_doc, stored_chunks

    async def _embed(self, text: str, label: str, chunk_index: int | None = None) -> list[float] | None:
        if self._embedder is None or not text.strip():
            return None
        try:
            return await self._runner.run(self._embedder.embed_single, text)
        except NewsPulseError as exc:
            logger.warning("document_embedding_failed", target=label, chunk_index=chunk_index, error=str(exc))
            return None

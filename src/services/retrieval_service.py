"""Semantic retrieval over articles, documents and document chunks.

Search degrades through three tiers so callers always get *something*
when the corpus is non-empty:

    1. SEMANTIC  -- embed the query, rank every embedded item by cosine
                    similarity, keep the top K above the threshold.
    2. LEXICAL   -- case-insensitive OR match of query terms (> 2 chars)
                    against article titles/summaries and document titles,
                    newest first.
    3. RECENCY   -- the most recent articles (or, with no articles, the
                    most recent active documents), unconditionally.

Any failure in the semantic tier (embedding provider down, storage read
error, bad vectors) drops to the lexical tier; a lexical failure drops to
the recency tier.  Results never expose scores or embeddings.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from src.models.news import (
    Article,
    Document,
    DocumentChunk,
    ItemKind,
    RetrievedItem,
    SearchCandidate,
)
from src.utils.errors import EmbeddingUnavailableError, NewsPulseError
from src.utils.similarity import cosine_similarity, has_dimension
from src.utils.text_normalizer import query_terms

if TYPE_CHECKING:
    from src.interfaces.embedding_provider import IEmbeddingProvider
    from src.interfaces.news_store import INewsStore

logger = structlog.get_logger(logger_name=__name__)


class RetrievalService:
    """Ranks the news corpus against a free-text query.

    Parameters
    ----------
    store:
        Corpus source.
    embedding_provider:
        Optional; without it every search starts at the lexical tier.
    embedding_dimension:
        Items whose embedding has a different length are skipped by the
        semantic tier (they stay eligible for the fallbacks).
    top_k, similarity_threshold:
        Semantic tier cut-offs.  Only scores strictly above the threshold
        are kept.
    lexical_limit, recency_limit:
        Result caps for the fallback tiers.
    """

    def __init__(
        self,
        store: INewsStore,
        embedding_provider: IEmbeddingProvider | None = None,
        embedding_dimension: int = 1536,
        top_k: int = 7,
        similarity_threshold: float = 0.7,
        lexical_limit: int = 5,
        recency_limit: int = 5,
    ) -> None:
        self._store = store
        self._embedder = embedding_provider
        self._dimension = embedding_dimension
        self._top_k = top_k
        self._threshold = similarity_threshold
        self._lexical_limit = lexical_limit
        self._recency_limit = recency_limit

    async def search(self, query: str) -> list[RetrievedItem]:
        """Return the most relevant corpus items for *query*.

        Raises
        ------
        StorageError
            Only if the final recency tier cannot read the store.
        """
        try:
            ranked = await self._semantic(query)
        except Exception as exc:
            logger.warning("retrieval_semantic_failed", error=str(exc), error_type=type(exc).__name__)
            ranked = []
        if ranked:
            logger.info("retrieval_semantic_hit", results=len(ranked), top_score=round(ranked[0].score, 4))
            return [_to_retrieved(c) for c in ranked]

        try:
            lexical = await self._lexical(query)
        except Exception as exc:
            logger.warning("retrieval_lexical_failed", error=str(exc), error_type=type(exc).__name__)
            lexical = []
        if lexical:
            logger.info("retrieval_fallback_lexical", results=len(lexical))
            return lexical

        recent = await self._recent()
        logger.info("retrieval_fallback_recency", results=len(recent))
        return recent

    # ------------------------------------------------------------------
    # Tier 1: semantic
    # ------------------------------------------------------------------

    async def _semantic(self, query: str) -> list[SearchCandidate]:
        if not query or not query.strip():
            return []
        query_vector = await self._embed_query(query)
        if not has_dimension(query_vector, self._dimension):
            raise EmbeddingUnavailableError(
                message=f"Query embedding has {len(query_vector)} dims, expected {self._dimension}",
                provider_name=self._embedder.get_provider_name(),
            )

        corpus = await self._load_corpus()
        scored = [
            candidate.model_copy(
                update={"score": cosine_similarity(query_vector, candidate.item.embedding)}
            )
            for candidate in corpus
        ]
        scored.sort(key=lambda c: c.score, reverse=True)
        top = [c for c in scored[: self._top_k] if c.score > self._threshold]
        logger.debug(
            "retrieval_semantic_scored",
            corpus_size=len(corpus),
            above_threshold=len(top),
            threshold=self._threshold,
        )
        return top

    async def _embed_query(self, query: str) -> list[float]:
        if self._embedder is None:
            raise EmbeddingUnavailableError("No embedding provider configured")
        try:
            return await self._embedder.embed_single(query)
        except NewsPulseError as exc:
            raise EmbeddingUnavailableError(
                message=f"Query embedding failed: {exc.message}",
                provider_name=self._embedder.get_provider_name(),
            ) from exc

    async def _load_corpus(self) -> list[SearchCandidate]:
        articles = await self._store.list_embedded_articles()
        documents = await self._store.list_embedded_documents()
        chunks = await self._store.list_embedded_chunks()

        corpus: list[SearchCandidate] = []
        for article in articles:
            if article.summary and has_dimension(article.embedding, self._dimension):
                corpus.append(SearchCandidate(kind=ItemKind.ARTICLE, item=article, text=article.summary))
        for document in documents:
            if document.is_active and has_dimension(document.embedding, self._dimension):
                corpus.append(SearchCandidate(kind=ItemKind.DOCUMENT, item=document, text=document.content))
        for chunk in chunks:
            if has_dimension(chunk.embedding, self._dimension):
                corpus.append(SearchCandidate(kind=ItemKind.CHUNK, item=chunk, text=chunk.text))

        skipped = len(articles) + len(documents) + len(chunks) - len(corpus)
        if skipped:
            logger.debug("retrieval_items_skipped", skipped=skipped, reason="missing_or_wrong_dimension")
        return corpus

    # ------------------------------------------------------------------
    # Tiers 2 and 3: fallbacks
    # ------------------------------------------------------------------

    async def _lexical(self, query: str) -> list[RetrievedItem]:
        terms = query_terms(query)
        if not terms:
            return []
        articles = await self._store.search_articles_lexical(terms, self._lexical_limit)
        documents = await self._store.search_documents_lexical(terms, self._lexical_limit)

        items = [_article_item(a) for a in articles] + [_document_item(d) for d in documents]
        items.sort(key=lambda i: i.date.timestamp() if i.date else 0.0, reverse=True)
        return items[: self._lexical_limit]

    async def _recent(self) -> list[RetrievedItem]:
        articles = await self._store.recent_articles(self._recency_limit)
        if articles:
            return [_article_item(a) for a in articles]
        documents = await self._store.recent_documents(self._recency_limit)
        return [_document_item(d) for d in documents]


# ── Result mapping ────────────────────────────────────────────────────


def _article_item(article: Article) -> RetrievedItem:
    return RetrievedItem(
        kind=ItemKind.ARTICLE,
        id=article.id,
        title=article.title,
        text=article.summary or article.snippet or "",
        url=article.url,
        source=article.source,
        date=article.processed_at,
    )


def _document_item(document: Document) -> RetrievedItem:
    return RetrievedItem(
        kind=ItemKind.DOCUMENT,
        id=document.id,
        title=document.title,
        text=document.content,
        source=document.file_type,
        date=document.created_at,
    )


def _chunk_item(chunk: DocumentChunk) -> RetrievedItem:
    return RetrievedItem(
        kind=ItemKind.CHUNK,
        id=chunk.id,
        title=chunk.document_title or f"Document {chunk.document_id}",
        text=chunk.text,
        document_id=chunk.document_id,
        chunk_index=chunk.chunk_index,
    )


def _to_retrieved(candidate: SearchCandidate) -> RetrievedItem:
    if candidate.kind is ItemKind.ARTICLE:
        return _article_item(candidate.item)
    if candidate.kind is ItemKind.DOCUMENT:
        return _document_item(candidate.item)
    return _chunk_item(candidate.item)

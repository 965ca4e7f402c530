"""Embedding provider implementations.

Embeddings convert text into numeric vectors that capture semantic meaning.
newspulse stores them next to each article, document and chunk and ranks
them by cosine similarity at query time.

One implementation of IEmbeddingProvider:
    OpenAIEmbeddingProvider - text-embedding-3-small (1536 dims).
"""

from src.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

__all__ = ["OpenAIEmbeddingProvider"]

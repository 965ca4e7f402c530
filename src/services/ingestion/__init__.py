"""News ingestion pipeline for the newspulse research-news corpus.

Pipeline stages overview:

1. **Resolve** (url_resolver.py / UrlResolver) -- Expands shortener and
   share links (bit.ly, share.google, google.com/url ...) to the canonical
   article URL.

2. **Dedup** (dedup_index.py / DedupIndex) -- A per-batch snapshot of the
   stored URLs, loaded page by page, checked before and after resolution.

3. **Extract** (metadata_extractor.py / MetadataExtractor) -- Direct page
   fetch, then three search-fallback tiers, behind a validation gate.

4. **Enrich** (services/enrichment_service.py) -- Optional summary, image
   and embedding.

5. **Store** (via INewsStore) -- ``UNIQUE(url)`` is the final guard.

Uploaded reference documents take a separate path: DocumentIndexingService
normalises, chunks (chunker.py / TextChunker) and embeds them.
"""

from src.services.ingestion.chunker import TextChunker
from src.services.ingestion.dedup_index import DedupIndex
from src.services.ingestion.document_service import DocumentIndexingService
from src.services.ingestion.ingestion_service import IngestionService
from src.services.ingestion.metadata_extractor import MetadataExtractor
from src.services.ingestion.url_resolver import DEFAULT_SHORTENER_HOSTS, UrlResolver

__all__ = [
    "DEFAULT_SHORTENER_HOSTS",
    "DedupIndex",
    "DocumentIndexingService",
    "IngestionService",
    "MetadataExtractor",
    "TextChunker",
    "UrlResolver",
]

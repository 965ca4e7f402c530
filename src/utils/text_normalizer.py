"""Text normalization utilities for scraped metadata and indexed documents.

This module handles three distinct normalization concerns:

1. **HTML fragment cleanup** -- Titles and descriptions lifted from meta tags
   or search-result snippets routinely contain inline markup (``<b>``,
   ``<em>``) and HTML entities, sometimes double-encoded (``&amp;amp;``).
   :func:`clean_html_text` decodes the entities, strips the tags with
   BeautifulSoup (including tags that were themselves entity-encoded), and
   collapses whitespace.

2. **Document text cleanup** -- Uploaded documents arrive with mixed line
   endings and long runs of blank lines.  :func:`normalize_document_text`
   makes them uniform before chunking so chunk boundaries fall on real
   paragraph breaks.

3. **Query tokenization** -- :func:`query_terms` splits a free-text query into
   the lower-cased terms used by the lexical retrieval fallback.
"""

import html
import re

from bs4 import BeautifulSoup

# Collapse any whitespace run (including newlines) to a single space
_WHITESPACE = re.compile(r"\s+")

# Collapse 3+ newlines to double-newline (preserves paragraph breaks)
_MULTI_NEWLINE = re.compile(r"\n{3,}")

# Collapse 2+ spaces/tabs to single space
_MULTI_SPACE = re.compile(r"[ \t]{2,}")

# Minimum token length kept by the lexical fallback ("of", "in" are noise)
_MIN_TERM_LENGTH = 3


def clean_html_text(fragment: str | None) -> str:
    """Strip inline markup and decode entities from an HTML text fragment.

    Args:
        fragment: Raw text possibly containing tags and entities.

    Returns:
        Plain single-line text; empty string for ``None`` or blank input.
    """
    if not fragment:
        return ""

    # Decode before stripping so entity-encoded markup (&lt;b&gt;) is removed too.
    # The second unescape handles double-encoded entities from CMS exports.
    text = html.unescape(html.unescape(fragment))
    if "<" in text:
        text = BeautifulSoup(text, "html.parser").get_text()

    return _WHITESPACE.sub(" ", text).strip()


def normalize_document_text(text: str) -> str:
    """Normalize line endings and blank-line runs in document text.

    Args:
        text: Raw document text.

    Returns:
        Text with ``\\n`` line endings, at most one blank line between
        paragraphs, single spaces, and no leading/trailing whitespace.
    """
    if not text:
        return ""

    cleaned = text.replace("\r\n", "\n").replace("\r", "\n")
    cleaned = _MULTI_NEWLINE.sub("\n\n", cleaned)
    cleaned = _MULTI_SPACE.sub(" ", cleaned)
    return cleaned.strip()


def query_terms(query: str | None) -> list[str]:
    """Split *query* on whitespace and keep lower-cased terms of 3+ chars.

    Duplicates are removed while keeping first-seen order.
    """
    if not query:
        return []

    seen: dict[str, None] = {}
    for token in query.lower().split():
        if len(token) >= _MIN_TERM_LENGTH:
            seen.setdefault(token, None)
    return list(seen)

"""Pure classification of fetched pages into content vs. bot-protection walls.

News publishers frequently answer automated requests with a challenge page
(Cloudflare "Just a moment...", Akamai "Access Denied", Incapsula, DataDome)
instead of the article.  Those bodies still parse as HTML and often carry a
plausible ``<title>``, so the metadata extractor asks this module first
whether the body is worth parsing at all.

No I/O happens here -- the function takes the body and the status code and
returns a :class:`PageCategory`, which keeps it trivially unit-testable.
"""

from __future__ import annotations

from enum import Enum


class PageCategory(str, Enum):
    """Outcome of classifying a fetched page body."""

    CONTENT = "content"
    BLOCKED = "blocked"
    ERROR = "error"
    EMPTY = "empty"


# Lower-cased substrings that only appear on challenge / denial pages.
_BLOCK_MARKERS: tuple[str, ...] = (
    "cf-browser-verification",
    "cf-challenge",
    "cf-chl-bypass",
    "_cf_chl_opt",
    "challenge-platform",
    "just a moment...",
    "checking your browser",
    "attention required! | cloudflare",
    "ddos protection by",
    "access denied",
    "you don't have permission to access",
    "request unsuccessful. incapsula",
    "incapsula incident id",
    "datadome",
    "pardon our interruption",
    "are you a robot",
    "verify you are human",
    "please enable cookies",
    "enable javascript and cookies to continue",
    "bot detection",
    "captcha-delivery",
    "px-captcha",
)

# Status codes bot walls typically answer with.
_BLOCK_STATUSES: frozenset[int] = frozenset({401, 403, 429, 503})

# Bodies shorter than this on a block status are treated as bare denials.
_MIN_CONTENT_LENGTH = 200

# Only the head of the body is inspected; markers live in the first few KB.
_SCAN_WINDOW = 20_000


def find_block_marker(body: str) -> str | None:
    """Return the first bot-protection marker found in *body*, if any."""
    head = body[:_SCAN_WINDOW].lower()
    for marker in _BLOCK_MARKERS:
        if marker in head:
            return marker
    return None


def classify_page(body: str | None, status: int = 200) -> PageCategory:
    """Classify a fetched page.

    Parameters
    ----------
    body:
        Decoded response body (may be ``None`` or empty).
    status:
        HTTP status code of the final response.

    Returns
    -------
    PageCategory
        ``BLOCKED`` when a challenge marker is present, or when a block-type
        status comes back with an almost empty body.  ``ERROR`` for any other
        non-2xx status, ``EMPTY`` for a blank 2xx body, ``CONTENT`` otherwise.
    """
    text = body or ""

    if find_block_marker(text) is not None:
        return PageCategory.BLOCKED

    if status in _BLOCK_STATUSES and len(text.strip()) < _MIN_CONTENT_LENGTH:
        return PageCategory.BLOCKED

    if status >= 400:
        return PageCategory.ERROR

    if not text.strip():
        return PageCategory.EMPTY

    return PageCategory.CONTENT


def is_blocked(body: str | None, status: int = 200) -> bool:
    """Boolean shorthand for ``classify_page(...) is PageCategory.BLOCKED``."""
    return classify_page(body, status) is PageCategory.BLOCKED

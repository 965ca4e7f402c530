"""Character-window text chunking with boundary-aware cut points.

Splits long document text into bounded, overlapping windows for embedding.
Each window is at most ``max_chunk_size`` characters and consecutive
windows share up to ``overlap`` characters, so a sentence that straddles a
cut is still fully contained in at least one chunk.

Cut-point preference inside a window ``[start, start + max_chunk_size)``:

1. The last paragraph break (``"\\n\\n"``) past 50% of the window.
2. Otherwise the last period past 70% of the window (cut just after it).
3. Otherwise exactly at the window edge.

Chunks are returned unstripped, so the original text is recoverable from
:meth:`TextChunker.chunk_spans`:
``text == chunks[0] + chunks[1][prev_end - start_1:] + ...``.
"""

from __future__ import annotations

import structlog

logger = structlog.get_logger(logger_name=__name__)

_PARAGRAPH_BREAK = "\n\n"
_SENTENCE_END = "."
# Fractions of the window a boundary must lie beyond to be used as a cut.
_PARAGRAPH_MIN_FRACTION = 0.5
_SENTENCE_MIN_FRACTION = 0.7


class TextChunker:
    """Splits text into overlapping character windows.

    Parameters
    ----------
    max_chunk_size:
        Maximum characters per chunk (default 1000).
    overlap:
        Characters shared by consecutive chunks (default 200).  Must be
        smaller than ``max_chunk_size``.

    Raises
    ------
    ValueError
        If ``max_chunk_size <= 0``, ``overlap < 0`` or
        ``overlap >= max_chunk_size``.
    """

    def __init__(self, max_chunk_size: int = 1000, overlap: int = 200) -> None:
        if max_chunk_size <= 0:
            raise ValueError(f"max_chunk_size must be positive, got {max_chunk_size}")
        if overlap < 0:
            raise ValueError(f"overlap must be >= 0, got {overlap}")
        if overlap >= max_chunk_size:
            raise ValueError(
                f"overlap ({overlap}) must be smaller than max_chunk_size ({max_chunk_size})"
            )
        self._max = max_chunk_size
        self._overlap = overlap

    @property
    def max_chunk_size(self) -> int:
        return self._max

    @property
    def overlap(self) -> int:
        return self._overlap

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def chunk(self, text: str) -> list[str]:
        """Split *text* into ordered chunks.

        Returns ``[text]`` unchanged when ``len(text) <= max_chunk_size``.
        """
        chunks = [text[start:end] for start, end in self.chunk_spans(text)]
        if len(chunks) > 1:
            logger.debug(
                "text_chunked",
                text_length=len(text),
                chunk_count=len(chunks),
                max_chunk_size=self._max,
                overlap=self._overlap,
            )
        return chunks

    def chunk_spans(self, text: str) -> list[tuple[int, int]]:
        """Return ``(start, end)`` offsets of every chunk of *text*.

        ``start`` strictly increases from one span to the next, so the loop
        terminates for any input, including text without a single break.
        """
        length = len(text)
        if length <= self._max:
            return [(0, length)]

        spans: list[tuple[int, int]] = []
        start = 0
        while start < length:
            end = start + self._max
            if end < length:
                end = self._find_cut(text, start, end)
            else:
                end = length

            if end > start:
                spans.append((start, end))

            if end >= length:
                break

            start = max(end - self._overlap, start + 1)

        return spans

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _find_cut(self, text: str, start: int, end: int) -> int:
        """Pick the cut position for the window ``[start, end)``."""
        # A break that begins exactly at ``end`` still counts.
        paragraph = text.rfind(_PARAGRAPH_BREAK, start, end + len(_PARAGRAPH_BREAK))
        if paragraph > start + self._max * _PARAGRAPH_MIN_FRACTION:
            return paragraph

        sentence = text.rfind(_SENTENCE_END, start, end)
        if sentence > start + self._max * _SENTENCE_MIN_FRACTION:
            return sentence + 1

        return end

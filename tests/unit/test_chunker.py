"""Unit tests for TextChunker - boundary-aware overlapping windows."""

from __future__ import annotations

import pytest

from src.services.ingestion.chunker import TextChunker


def _reassemble(text: str, chunker: TextChunker) -> str:
    """Concatenate chunk spans with the overlap removed."""
    spans = chunker.chunk_spans(text)
    out = text[spans[0][0] : spans[0][1]]
    covered = spans[0][1]
    for start, end in spans[1:]:
        out += text[covered:end] if start < covered else text[start:end]
        covered = end
    return out


class TestConstructor:
    @pytest.mark.parametrize(
        ("size", "overlap"),
        [(0, 0), (-5, 0), (100, -1), (100, 100), (100, 150)],
    )
    def test_rejects_invalid_configuration(self, size: int, overlap: int) -> None:
        with pytest.raises(ValueError):
            TextChunker(max_chunk_size=size, overlap=overlap)

    def test_defaults(self) -> None:
        chunker = TextChunker()
        assert chunker.max_chunk_size == 1000
        assert chunker.overlap == 200


class TestShortText:
    def test_text_within_limit_is_single_chunk(self) -> None:
        text = "A short paragraph.\n\nAnother one."
        assert TextChunker().chunk(text) == [text]

    def test_exactly_max_size_is_single_chunk(self) -> None:
        text = "x" * 1000
        assert TextChunker().chunk(text) == [text]


class TestHardCuts:
    def test_1500_chars_without_boundaries(self) -> None:
        text = "A" * 1500
        chunks = TextChunker(max_chunk_size=1000, overlap=200).chunk(text)

        assert len(chunks) == 2
        assert len(chunks[0]) == 1000
        assert len(chunks[1]) == 700
        # The second chunk starts 200 characters before the first one ends.
        assert chunks[1] == text[800:]

    def test_every_chunk_respects_max_size(self) -> None:
        text = "word " * 2000
        chunker = TextChunker(max_chunk_size=300, overlap=50)
        assert all(len(c) <= 300 for c in chunker.chunk(text))


class TestBoundaries:
    def test_prefers_paragraph_break_past_half_window(self) -> None:
        first = "a" * 700
        text = first + "\n\n" + "b" * 600
        chunks = TextChunker(max_chunk_size=1000, overlap=100).chunk(text)

        assert chunks[0] == first

    def test_ignores_paragraph_break_before_half_window(self) -> None:
        text = "a" * 300 + "\n\n" + "b" * 1200
        chunks = TextChunker(max_chunk_size=1000, overlap=100).chunk(text)

        assert len(chunks[0]) == 1000

    def test_sentence_cut_keeps_the_period(self) -> None:
        text = "c" * 800 + ". " + "d" * 600
        chunks = TextChunker(max_chunk_size=1000, overlap=100).chunk(text)

        assert chunks[0] == "c" * 800 + "."

    def test_sentence_before_seventy_percent_is_ignored(self) -> None:
        text = "c" * 500 + ". " + "d" * 1000
        chunks = TextChunker(max_chunk_size=1000, overlap=100).chunk(text)

        assert len(chunks[0]) == 1000


class TestReconstruction:
    def test_spans_cover_text_exactly(self) -> None:
        paragraphs = [f"Paragraph {i}. " + "Sentence text here. " * 12 for i in range(15)]
        text = "\n\n".join(paragraphs)
        chunker = TextChunker(max_chunk_size=400, overlap=80)

        assert _reassemble(text, chunker) == text

    def test_start_strictly_increases(self) -> None:
        text = ("x" * 90 + "\n\n") * 40
        spans = TextChunker(max_chunk_size=100, overlap=99).chunk_spans(text)

        starts = [s for s, _ in spans]
        assert starts == sorted(set(starts))
        assert spans[-1][1] == len(text)

    def test_no_empty_chunks(self) -> None:
        text = ("Sentence. " * 300).strip()
        assert all(TextChunker(max_chunk_size=250, overlap=50).chunk(text))

# tests/test_chunking.py
"""
Tests for paragraph-boundary chunking.
"""

import pytest

from app.services.chunking import (
    ArticleChunker,
    describe_position,
    join_chunks,
    split_into_chunks,
)


def _article(paragraph_count: int, paragraph_len: int) -> str:
    return "\n\n".join(chr(ord("a") + i % 26) * paragraph_len for i in range(paragraph_count))


class TestArticleChunker:
    """Tests for ArticleChunker.split."""

    def test_empty_input_gives_no_chunks(self):
        assert ArticleChunker().split("") == []

    def test_small_input_is_one_chunk(self):
        """Text at or under the limit comes back whole."""
        text = "First paragraph.\n\nSecond paragraph."
        chunks = ArticleChunker(max_chars=4000).split(text)

        assert len(chunks) == 1
        assert chunks[0].text == text
        assert chunks[0].index == 0

    def test_exactly_max_chars_is_one_chunk(self):
        text = "x" * 4000
        assert len(ArticleChunker(max_chars=4000).split(text)) == 1

    def test_split_is_lossless(self):
        """Joining chunks with the separator reconstructs the input exactly."""
        text = _article(25, 700)
        chunks = split_into_chunks(text, max_chars=4000)

        assert len(chunks) > 1
        assert join_chunks(chunks) == text

    def test_lossless_with_irregular_paragraphs(self):
        text = "Intro line.\n\n\n\nAfter a double gap.\nSame paragraph.\n\n" + "y" * 5000 + "\n\nTail."
        assert join_chunks(split_into_chunks(text, max_chars=1000)) == text

    def test_chunks_respect_limit(self):
        text = _article(30, 500)
        for chunk in split_into_chunks(text, max_chars=2000):
            assert len(chunk.text) <= 2000

    def test_oversize_paragraph_kept_whole(self):
        """A paragraph longer than the limit is its own chunk, never truncated."""
        huge = "z" * 9000
        text = f"Short opener.\n\n{huge}\n\nShort closer."
        chunks = split_into_chunks(text, max_chars=4000)

        assert [c.text for c in chunks] == ["Short opener.", huge, "Short closer."]

    def test_leading_blank_paragraph_is_blank_chunk(self):
        huge = "z" * 5000
        text = f"\n\n{huge}"
        chunks = split_into_chunks(text, max_chars=4000)

        assert [c.is_blank for c in chunks] == [True, False]
        assert join_chunks(chunks) == text

    def test_nine_thousand_chars_gives_three_chunks(self):
        """9 paragraphs of 998 chars: 4 + 4 + 1 paragraphs under a 4000 limit."""
        text = _article(9, 998)
        assert len(text) == 8998

        chunks = split_into_chunks(text, max_chars=4000)
        assert len(chunks) == 3
        assert [c.source_offset_hint for c in chunks] == [
            "paragraphs 1-4",
            "paragraphs 5-8",
            "paragraph 9",
        ]

    def test_indices_are_sequential(self):
        chunks = split_into_chunks(_article(20, 900), max_chars=2000)
        assert [c.index for c in chunks] == list(range(len(chunks)))

    def test_deterministic(self):
        text = _article(17, 613)
        assert split_into_chunks(text, 1500) == split_into_chunks(text, 1500)

    def test_rejects_non_positive_limit(self):
        with pytest.raises(ValueError):
            ArticleChunker(max_chars=0)


class TestDescribePosition:
    def test_single_chunk(self):
        chunk = split_into_chunks("Only paragraph.")[0]
        assert describe_position(chunk, 1) == "the full text"

    def test_multi_chunk(self):
        chunks = split_into_chunks(_article(9, 998), max_chars=4000)
        assert describe_position(chunks[1], 3) == "part 2 of 3 (paragraphs 5-8)"

# app/services/chunking.py
"""
Paragraph-boundary chunking for long articles.

Model quality drops on long inputs and per-call output budgets are bounded,
so copy-edit, claim-flag and fact-check work on chunks of at most
``max_chars`` characters. Chunks never overlap and never split a paragraph:
joining chunk texts with the paragraph separator gives back the input
exactly.
"""

import logging
from dataclasses import dataclass
from typing import List

from app.constants import PipelineDefaults

logger = logging.getLogger(__name__)

SEPARATOR = PipelineDefaults.PARAGRAPH_SEPARATOR


@dataclass(frozen=True)
class Chunk:
    """A contiguous run of paragraphs from the source document."""
    index: int               # 0-based position in the document
    text: str
    source_offset_hint: str  # e.g. "paragraphs 5-8" (1-based, inclusive)

    @property
    def is_blank(self) -> bool:
        """Whitespace-only chunks are kept for the join but never sent to a model."""
        return not self.text.strip()


class ArticleChunker:
    """
    Splits article text into ordered, bounded chunks.

    Paragraphs accumulate into a buffer until the next one would push it past
    ``max_chars``. A paragraph that is longer than ``max_chars`` on its own
    becomes a chunk by itself and is never truncated.
    """

    def __init__(self, max_chars: int = PipelineDefaults.CHUNK_MAX_CHARS):
        if max_chars <= 0:
            raise ValueError("max_chars must be positive")
        self.max_chars = max_chars

    def needs_chunking(self, text: str) -> bool:
        return len(text) > self.max_chars

    def split(self, text: str) -> List[Chunk]:
        """
        Split text into chunks.

        Args:
            text: Full article text

        Returns:
            List of Chunk objects (empty only for empty input)
        """
        if not text:
            return []

        paragraphs = text.split(SEPARATOR)
        if not self.needs_chunking(text):
            return [Chunk(index=0, text=text, source_offset_hint=_hint(0, len(paragraphs) - 1))]

        chunks: List[Chunk] = []
        buffer: List[str] = []
        buffer_len = 0
        first_para = 0

        for i, para in enumerate(paragraphs):
            added = len(para) + (len(SEPARATOR) if buffer else 0)
            if buffer and buffer_len + added > self.max_chars:
                chunks.append(self._make_chunk(len(chunks), buffer, first_para))
                buffer = []
                buffer_len = 0
                first_para = i
                added = len(para)
            buffer.append(para)
            buffer_len += added

        if buffer:
            chunks.append(self._make_chunk(len(chunks), buffer, first_para))

        logger.info(
            f"[CHUNKING] Split {len(text)} char article into {len(chunks)} chunks",
            extra={"chunk_count": len(chunks)},
        )
        return chunks

    def _make_chunk(self, index: int, paragraphs: List[str], first_para: int) -> Chunk:
        return Chunk(
            index=index,
            text=SEPARATOR.join(paragraphs),
            source_offset_hint=_hint(first_para, first_para + len(paragraphs) - 1),
        )


def _hint(first: int, last: int) -> str:
    if first == last:
        return f"paragraph {first + 1}"
    return f"paragraphs {first + 1}-{last + 1}"


def split_into_chunks(text: str, max_chars: int = PipelineDefaults.CHUNK_MAX_CHARS) -> List[Chunk]:
    """Convenience wrapper around ArticleChunker.split."""
    return ArticleChunker(max_chars=max_chars).split(text)


def join_chunks(chunks: List[Chunk]) -> str:
    """Inverse of split: rejoin chunk texts with the paragraph separator."""
    return SEPARATOR.join(c.text for c in chunks)


def describe_position(chunk: Chunk, total: int) -> str:
    """Human-readable position used in per-chunk prompts."""
    if total <= 1:
        return "the full text"
    return f"part {chunk.index + 1} of {total} ({chunk.source_offset_hint})"

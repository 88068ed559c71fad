# app/services/verifier.py
"""
Per-chunk verification against gathered evidence, and the final merge.

Each chunk is verified in its own model call with only the evidence that
looks relevant to it. A chunk whose call fails keeps its original text, so
the merged document is always complete.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional

from app.constants import OutputTokens, PipelineDefaults
from app.llm.base import LLMProvider
from app.llm.prompts import build_verification_prompt
from app.services.chunking import SEPARATOR, Chunk, describe_position
from app.services.evidence_gatherer import Evidence

logger = logging.getLogger(__name__)

_WORD = re.compile(r"\w+")


@dataclass(frozen=True)
class EvidenceSelector:
    """
    Picks the evidence relevant to one chunk.

    An entry is relevant when enough of its claim's longer words appear in
    the chunk, or when the start of the claim appears verbatim. If too few
    entries qualify, every entry is returned (relevant ones first, then capped)
    so the verifier is never starved by a fuzzy match.
    """

    word_min_length: int = PipelineDefaults.RELEVANCE_WORD_MIN_LENGTH
    min_word_matches: int = PipelineDefaults.RELEVANCE_MIN_WORD_MATCHES
    prefix_chars: int = PipelineDefaults.RELEVANCE_PREFIX_CHARS
    min_matches: int = PipelineDefaults.RELEVANCE_MIN_MATCHES
    fallback_cap: int = PipelineDefaults.RELEVANCE_FALLBACK_CAP

    def is_relevant(self, chunk_lower: str, evidence: Evidence) -> bool:
        claim = evidence.claim_text.lower()
        prefix = claim[: self.prefix_chars].strip()
        if prefix and prefix in chunk_lower:
            return True
        words = {w for w in _WORD.findall(claim) if len(w) >= self.word_min_length}
        hits = sum(1 for w in words if w in chunk_lower)
        return hits >= self.min_word_matches

    def select(self, chunk_text: str, evidence: list[Evidence]) -> list[Evidence]:
        chunk_lower = chunk_text.lower()
        relevant = [e for e in evidence if self.is_relevant(chunk_lower, e)]
        if len(relevant) >= self.min_matches:
            return relevant
        # Fall back to everything, keeping the few relevant entries ahead of the cap
        relevant_ids = {id(e) for e in relevant}
        rest = [e for e in evidence if id(e) not in relevant_ids]
        return (relevant + rest)[: self.fallback_cap]


def format_evidence(evidence: Iterable[Evidence], snippet_chars: int = PipelineDefaults.SNIPPET_MAX_CHARS) -> str:
    """Render evidence as a plain-text block for the verification prompt."""
    blocks = []
    for i, item in enumerate(evidence, start=1):
        lines = [f"[{i}] Claim: {item.claim_text}", f"    Search: {item.query}"]
        if not item.results:
            lines.append("    No results found.")
        for result in item.results:
            snippet = result.snippet[:snippet_chars]
            lines.append(f"    - {result.title} ({result.url}): {snippet}")
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)


class ChunkVerifier:
    """One verification call per chunk."""

    def __init__(self, provider: LLMProvider, selector: Optional[EvidenceSelector] = None):
        self.provider = provider
        self.selector = selector or EvidenceSelector()

    async def verify(
        self,
        chunk: Chunk,
        evidence: list[Evidence],
        as_of: date,
        total_chunks: int = 1,
        style_guide: Optional[str] = None,
    ) -> str:
        if chunk.is_blank:
            return chunk.text
        selected = self.selector.select(chunk.text, evidence)
        logger.debug(f"Chunk {chunk.index}: {len(selected)}/{len(evidence)} evidence entries")

        reply = await self.provider.complete(
            build_verification_prompt(
                chunk.text,
                format_evidence(selected),
                describe_position(chunk, total_chunks),
                as_of,
                style_guide,
            ),
            max_tokens=OutputTokens.VERIFICATION_CHUNK,
            call_type="verify_chunk",
        )
        if not reply.strip():
            raise ValueError(f"empty verification reply for chunk {chunk.index}")
        return reply.strip()


def merge_chunk_outputs(texts: Iterable[str]) -> str:
    """Join per-chunk outputs in chunk order, separated by a blank line."""
    return SEPARATOR.join(texts)

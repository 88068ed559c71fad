"""
Per-chunk claim extraction.

Each chunk is sent to the model independently with an over-inclusive
extraction prompt. A reply that can't be decoded yields no claims for that
chunk; extraction never fails the pipeline.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date

from app.constants import OutputTokens
from app.llm.base import LLMProvider
from app.llm.parsing import parse_json_array
from app.llm.prompts import build_claim_extraction_prompt
from app.services.chunking import Chunk

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Claim:
    """A checkable statement pulled from one chunk."""

    text: str
    search_query: str
    source_chunk: int


def _coerce_claim(item: object, chunk_index: int) -> Claim | None:
    if isinstance(item, str):
        text = item.strip()
        query = text
    elif isinstance(item, dict):
        text = str(item.get("claim") or item.get("text") or "").strip()
        query = str(item.get("search_query") or item.get("query") or "").strip() or text
    else:
        return None
    if not text:
        return None
    return Claim(text=text, search_query=query, source_chunk=chunk_index)


class ClaimExtractor:
    """Asks the model for every factual claim in a chunk."""

    def __init__(self, provider: LLMProvider):
        self.provider = provider

    async def extract(self, chunk: Chunk, as_of: date) -> list[Claim]:
        if chunk.is_blank:
            return []
        reply = await self.provider.complete(
            build_claim_extraction_prompt(chunk.text, as_of),
            max_tokens=OutputTokens.CLAIM_EXTRACTION,
            call_type="extract_claims",
        )

        parsed = parse_json_array(reply)
        if not parsed.ok:
            logger.warning(
                f"Claim extraction for chunk {chunk.index} unparseable: {parsed.reason}"
            )
            return []

        claims = [c for c in (_coerce_claim(item, chunk.index) for item in parsed.data) if c]
        logger.debug(f"Chunk {chunk.index}: {len(claims)} claims")
        return claims

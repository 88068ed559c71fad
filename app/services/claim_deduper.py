# app/services/claim_deduper.py
"""
Near-duplicate detection for claims extracted from separate chunks.

The same fact is often restated in an article's lede and body, and each
chunk is extracted independently, so the raw claim list repeats itself.
Two claims are duplicates when their significant-word overlap
(|A & B| / max(|A|, |B|)) is above the threshold. The comparison runs in
input order and the earliest phrasing wins.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Optional

from app.constants import PipelineDefaults
from app.services.claim_extractor import Claim

logger = logging.getLogger(__name__)

NUMBER_WORDS = {
    "0": "zero", "1": "one", "2": "two", "3": "three", "4": "four",
    "5": "five", "6": "six", "7": "seven", "8": "eight", "9": "nine",
    "10": "ten", "11": "eleven", "12": "twelve", "13": "thirteen",
    "14": "fourteen", "15": "fifteen", "16": "sixteen", "17": "seventeen",
    "18": "eighteen", "19": "nineteen", "20": "twenty",
}


def normalize_text(text: str) -> str:
    """Lowercase, spell out percent signs and small numbers, strip punctuation."""
    if not text:
        return ""
    text = text.lower().replace("%", " percent ")
    text = re.sub(r"[^\w\s]", "", text)
    text = re.sub(r"\s+", " ", text).strip()
    return " ".join(NUMBER_WORDS.get(word, word) for word in text.split(" "))


def significant_words(
    text: str, min_length: int = PipelineDefaults.CLAIM_MIN_WORD_LENGTH
) -> set[str]:
    return {w for w in normalize_text(text).split() if len(w) >= min_length}


def overlap_ratio(words1: set[str], words2: set[str]) -> float:
    if not words1 or not words2:
        return 0.0
    return len(words1 & words2) / max(len(words1), len(words2))


@dataclass
class UniqueClaim:
    """Representative of a cluster of near-duplicate claims."""

    claim: Claim
    tokens: frozenset
    evidence: Optional[object] = None   # Evidence, attached by the gatherer
    duplicates: list = field(default_factory=list)

    @property
    def text(self) -> str:
        return self.claim.text

    @property
    def search_query(self) -> str:
        return self.claim.search_query


class ClaimDeduper:
    """Collapses near-duplicate claims, keeping the first-seen phrasing."""

    def __init__(
        self,
        similarity_threshold: float = PipelineDefaults.CLAIM_SIMILARITY_THRESHOLD,
    ):
        self.similarity_threshold = similarity_threshold

    def is_duplicate(self, tokens: set[str], existing: UniqueClaim) -> bool:
        return overlap_ratio(tokens, existing.tokens) > self.similarity_threshold

    def dedupe(self, claims: list[Claim]) -> list[UniqueClaim]:
        unique: list[UniqueClaim] = []
        for claim in claims:
            tokens = significant_words(claim.text)
            match = next((u for u in unique if self.is_duplicate(tokens, u)), None)
            if match is not None:
                match.duplicates.append(claim)
                continue
            unique.append(UniqueClaim(claim=claim, tokens=frozenset(tokens)))

        logger.info(
            f"Deduped {len(claims)} claims to {len(unique)}",
            extra={"claim_count": len(claims), "unique_claims": len(unique)},
        )
        return unique

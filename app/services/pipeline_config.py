"""
Runtime knobs for the long-document pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from app.config import Settings, get_settings
from app.constants import PipelineDefaults
from app.services.verifier import EvidenceSelector


@dataclass(frozen=True)
class PipelineConfig:
    """Configuration for chunked copy-edit, claim-flag and fact-check runs."""

    # Chunking
    chunk_max_chars: int = PipelineDefaults.CHUNK_MAX_CHARS

    # Fan-out
    edit_batch_size: Optional[int] = PipelineDefaults.EDIT_BATCH_SIZE
    search_batch_size: Optional[int] = PipelineDefaults.SEARCH_BATCH_SIZE
    extraction_batch_size: Optional[int] = PipelineDefaults.EXTRACTION_BATCH_SIZE

    # Claims
    confirm_threshold: int = PipelineDefaults.CLAIM_CONFIRM_THRESHOLD
    similarity_threshold: float = PipelineDefaults.CLAIM_SIMILARITY_THRESHOLD

    # Evidence relevance
    relevance_min_word_matches: int = PipelineDefaults.RELEVANCE_MIN_WORD_MATCHES
    relevance_prefix_chars: int = PipelineDefaults.RELEVANCE_PREFIX_CHARS
    relevance_min_matches: int = PipelineDefaults.RELEVANCE_MIN_MATCHES
    relevance_fallback_cap: int = PipelineDefaults.RELEVANCE_FALLBACK_CAP

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "PipelineConfig":
        settings = settings or get_settings()
        return cls(
            chunk_max_chars=settings.CHUNK_MAX_CHARS,
            edit_batch_size=settings.EDIT_BATCH_SIZE,
            search_batch_size=settings.SEARCH_BATCH_SIZE,
            confirm_threshold=settings.CLAIM_CONFIRM_THRESHOLD,
            similarity_threshold=settings.CLAIM_SIMILARITY_THRESHOLD,
            relevance_min_word_matches=settings.RELEVANCE_MIN_WORD_MATCHES,
            relevance_prefix_chars=settings.RELEVANCE_PREFIX_CHARS,
            relevance_min_matches=settings.RELEVANCE_MIN_MATCHES,
            relevance_fallback_cap=settings.RELEVANCE_FALLBACK_CAP,
        )

    def evidence_selector(self) -> EvidenceSelector:
        return EvidenceSelector(
            min_word_matches=self.relevance_min_word_matches,
            prefix_chars=self.relevance_prefix_chars,
            min_matches=self.relevance_min_matches,
            fallback_cap=self.relevance_fallback_cap,
        )

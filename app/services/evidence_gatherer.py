"""
Evidence gathering: one web search per unique claim.

Searches run through the Dispatcher in batches. A failed search and a
search with no hits both produce Evidence with empty results; only claims
that were never searched have no Evidence at all.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from app.constants import PipelineDefaults
from app.services.claim_deduper import UniqueClaim
from app.services.dispatcher import BatchCallback, Dispatcher
from app.services.web_search import BaseSearchClient, SearchResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Evidence:
    claim_text: str
    query: str
    results: tuple[SearchResult, ...] = ()

    @property
    def found(self) -> bool:
        return bool(self.results)

    def to_dict(self) -> dict:
        return {
            "claim_text": self.claim_text,
            "query": self.query,
            "results": [r.to_dict() for r in self.results],
        }


class EvidenceGatherer:
    def __init__(
        self,
        search_client: BaseSearchClient,
        batch_size: Optional[int] = PipelineDefaults.SEARCH_BATCH_SIZE,
    ):
        self.search_client = search_client
        self.batch_size = batch_size

    async def gather(
        self,
        unique_claims: list[UniqueClaim],
        on_batch_complete: Optional[BatchCallback] = None,
    ) -> list[Evidence]:
        """
        Search for every claim and attach the Evidence to it.

        Returns:
            One Evidence per claim, in claim order
        """
        dispatcher = Dispatcher("search", batch_size=self.batch_size, on_batch_complete=on_batch_complete)
        outcomes = await dispatcher.run(
            [lambda q=claim.search_query: self.search_client.search(q) for claim in unique_claims]
        )

        evidence: list[Evidence] = []
        for claim, outcome in zip(unique_claims, outcomes):
            results = outcome.value if outcome.ok and outcome.value else []
            item = Evidence(claim_text=claim.text, query=claim.search_query, results=tuple(results))
            claim.evidence = item
            evidence.append(item)

        found = sum(1 for e in evidence if e.found)
        logger.info(
            f"Gathered evidence for {found}/{len(evidence)} claims",
            extra={"evidence_count": len(evidence)},
        )
        return evidence

# app/services/fact_checker.py
"""
Web-verified fact-check pipeline.

Stages:
1. Chunk the article on paragraph boundaries
2. Extract claims from every chunk concurrently
3. Dedupe claims across chunks
4. Confirmation gate (stop and ask above the claim threshold)
5. Search for evidence per unique claim (batches of 10)
6. Verify each chunk against its relevant evidence (batches of 3)
7. Merge chunk outputs in order and read off the verdicts

Without a search client the pipeline degrades to a single model call over
the whole article, with claims about current facts marked CHECK_CURRENT.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional

from app.constants import OutputTokens, TaskNames
from app.llm.base import LLMProvider
from app.llm.prompts import build_fact_check_prompt
from app.logging_config import log_stage
from app.services.chunking import ArticleChunker
from app.services.claim_deduper import ClaimDeduper
from app.services.claim_extractor import Claim, ClaimExtractor
from app.services.confirmation_gate import ConfirmationGate
from app.services.dispatcher import Dispatcher
from app.services.errors import TaskParseError
from app.services.events import EventSink
from app.services.evidence_gatherer import EvidenceGatherer
from app.services.markers import parse_verdicts
from app.services.pipeline_config import PipelineConfig
from app.services.verifier import ChunkVerifier, merge_chunk_outputs
from app.services.web_search import BaseSearchClient

logger = logging.getLogger(__name__)

TASK = TaskNames.FACT_CHECK


class FactCheckMode(str, Enum):
    WEB_VERIFIED = "web_verified"
    SINGLE_SHOT = "single_shot"


class FactCheckStatus(str, Enum):
    COMPLETED = "completed"
    NEEDS_CONFIRMATION = "needs_confirmation"


@dataclass(frozen=True)
class FactCheckOutcome:
    status: FactCheckStatus
    claim_count: int
    report: Optional[dict] = None


class FactCheckPipeline:
    """
    Orchestrates one fact-check invocation.

    Usage:
        pipeline = FactCheckPipeline(provider, search_client)
        outcome = await pipeline.run(text, sink, confirmed=False)
    """

    def __init__(
        self,
        provider: LLMProvider,
        search_client: Optional[BaseSearchClient] = None,
        config: Optional[PipelineConfig] = None,
    ):
        self.provider = provider
        self.search_client = search_client
        self.config = config or PipelineConfig()
        self.extractor = ClaimExtractor(provider)
        self.deduper = ClaimDeduper(self.config.similarity_threshold)
        self.gate = ConfirmationGate(self.config.confirm_threshold)
        self.verifier = ChunkVerifier(provider, self.config.evidence_selector())

    async def run(
        self,
        text: str,
        sink: EventSink,
        confirmed: bool = False,
        style_guide: Optional[str] = None,
        as_of: Optional[date] = None,
    ) -> FactCheckOutcome:
        as_of = as_of or date.today()
        if self.search_client is None:
            return await self._run_single_shot(text, sink, style_guide)
        return await self._run_web_verified(text, sink, confirmed, style_guide, as_of)

    async def _run_single_shot(
        self, text: str, sink: EventSink, style_guide: Optional[str]
    ) -> FactCheckOutcome:
        sink.progress(TASK, "Web search is not configured; checking against model knowledge only")
        with log_stage("fact_check_single_shot"):
            reply = await self.provider.complete(
                build_fact_check_prompt(text, style_guide),
                max_tokens=OutputTokens.FACT_CHECK_SINGLE_SHOT,
                call_type="fact_check",
            )
        if not reply or not reply.strip():
            raise TaskParseError(TASK, "empty reply")

        marked = reply.strip()
        verdicts = parse_verdicts(marked)
        return FactCheckOutcome(
            status=FactCheckStatus.COMPLETED,
            claim_count=len(verdicts),
            report={
                "text": marked,
                "verdicts": verdicts,
                "claimCount": len(verdicts),
                "evidenceCount": 0,
                "mode": FactCheckMode.SINGLE_SHOT.value,
            },
        )

    async def _run_web_verified(
        self,
        text: str,
        sink: EventSink,
        confirmed: bool,
        style_guide: Optional[str],
        as_of: date,
    ) -> FactCheckOutcome:
        chunks = ArticleChunker(self.config.chunk_max_chars).split(text)
        total = len(chunks)
        sink.progress(TASK, f"Extracting claims from {total} section{'s' if total != 1 else ''}")

        with log_stage("extract_claims"):
            outcomes = await Dispatcher("extract", batch_size=self.config.extraction_batch_size).run(
                [lambda c=c: self.extractor.extract(c, as_of) for c in chunks]
            )
            raw_claims: list[Claim] = []
            for outcome in outcomes:
                if outcome.ok:
                    raw_claims.extend(outcome.value)

        with log_stage("dedupe_claims"):
            unique = self.deduper.dedupe(raw_claims)
        sink.progress(TASK, f"Found {len(unique)} unique claims ({len(raw_claims)} before merging duplicates)")

        decision = self.gate.evaluate(len(unique), confirmed)
        if not decision.proceed:
            sink.confirm_required(TASK, decision.claim_count, decision.message)
            logger.info(
                f"Fact-check paused for confirmation at {decision.claim_count} claims",
                extra={"unique_claims": decision.claim_count},
            )
            return FactCheckOutcome(status=FactCheckStatus.NEEDS_CONFIRMATION, claim_count=len(unique))

        async def report_search(done: int, of: int) -> None:
            sink.progress(TASK, f"Searched {done} of {of} claims")

        with log_stage("gather_evidence"):
            gatherer = EvidenceGatherer(self.search_client, batch_size=self.config.search_batch_size)
            evidence = await gatherer.gather(unique, on_batch_complete=report_search)

        async def report_verify(done: int, of: int) -> None:
            sink.progress(TASK, f"Verified {done} of {of} sections")

        with log_stage("verify_chunks"):
            outcomes = await Dispatcher(
                "verify", batch_size=self.config.edit_batch_size, on_batch_complete=report_verify
            ).run([lambda c=c: self.verifier.verify(c, evidence, as_of, total, style_guide) for c in chunks])

            texts = [o.value if o.ok else c.text for c, o in zip(chunks, outcomes)]
            failed = sum(1 for o in outcomes if not o.ok)
            if failed:
                logger.warning(f"{failed} of {total} chunks kept unverified", extra={"failed": failed})

        merged = merge_chunk_outputs(texts)
        return FactCheckOutcome(
            status=FactCheckStatus.COMPLETED,
            claim_count=len(unique),
            report={
                "text": merged,
                "verdicts": parse_verdicts(merged),
                "claimCount": len(unique),
                "evidenceCount": len(evidence),
                "mode": FactCheckMode.WEB_VERIFIED.value,
            },
        )

# app/services/markup_pipeline.py
"""
Chunked markup tasks: copy-edit and claim-flag.

Both tasks share one shape: split the article, ask the model to mark up
each chunk and list its findings, then renumber findings across chunks and
merge. A chunk whose call fails is passed through unmarked; only when every
chunk fails does the task itself fail.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from app.constants import OutputTokens, TaskNames
from app.llm.base import LLMProvider
from app.llm.prompts import build_claim_flag_prompt, build_copy_edit_prompt
from app.logging_config import log_stage
from app.services.chunking import ArticleChunker, Chunk, describe_position
from app.services.dispatcher import Dispatcher
from app.services.errors import MarkupTaskError
from app.services.events import EventSink
from app.services.markers import (
    CLAIM_MARKERS,
    ISSUE_MARKERS,
    Finding,
    FindingNumberer,
    MarkerSpec,
)
from app.services.pipeline_config import PipelineConfig
from app.services.verifier import merge_chunk_outputs

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MarkupTask:
    name: str
    markers: MarkerSpec
    build_prompt: Callable[[str, str, Optional[str]], str]
    max_tokens: int
    progress_verb: str


COPY_EDIT_TASK = MarkupTask(
    name=TaskNames.COPY_EDIT,
    markers=ISSUE_MARKERS,
    build_prompt=build_copy_edit_prompt,
    max_tokens=OutputTokens.COPY_EDIT_CHUNK,
    progress_verb="Copy-edited",
)

CLAIM_FLAG_TASK = MarkupTask(
    name=TaskNames.CLAIM_FLAG,
    markers=CLAIM_MARKERS,
    build_prompt=build_claim_flag_prompt,
    max_tokens=OutputTokens.CLAIM_FLAG_CHUNK,
    progress_verb="Flagged claims in",
)


@dataclass(frozen=True)
class MarkedDocument:
    text: str
    findings: tuple[Finding, ...]
    failed_chunks: int = 0

    def to_dict(self) -> dict:
        return {
            "text": self.text,
            "findings": [f.to_dict() for f in self.findings],
        }


class MarkupPipeline:
    def __init__(self, provider: LLMProvider, config: Optional[PipelineConfig] = None):
        self.provider = provider
        self.config = config or PipelineConfig()

    async def _mark_chunk(
        self, task: MarkupTask, chunk: Chunk, total: int, style_guide: Optional[str]
    ) -> str:
        if chunk.is_blank:
            return chunk.text
        reply = await self.provider.complete(
            task.build_prompt(chunk.text, describe_position(chunk, total), style_guide),
            max_tokens=task.max_tokens,
            call_type=f"{task.name}_chunk",
        )
        if not reply or not reply.strip():
            raise ValueError(f"empty {task.name} reply for chunk {chunk.index}")
        return reply

    async def run(
        self,
        task: MarkupTask,
        text: str,
        style_guide: Optional[str] = None,
        sink: Optional[EventSink] = None,
    ) -> MarkedDocument:
        chunks = ArticleChunker(self.config.chunk_max_chars).split(text)
        if not chunks:
            return MarkedDocument(text="", findings=())
        total = len(chunks)

        async def report(done: int, of: int) -> None:
            if sink is not None and of > 1:
                sink.progress(task.name, f"{task.progress_verb} {done} of {of} sections")

        with log_stage(task.name):
            dispatcher = Dispatcher(task.name, batch_size=self.config.edit_batch_size, on_batch_complete=report)
            outcomes = await dispatcher.run(
                [lambda c=c: self._mark_chunk(task, c, total, style_guide) for c in chunks]
            )

            failed = sum(1 for o in outcomes if not o.ok)
            if failed == total:
                raise MarkupTaskError(task.name, failed)

            numberer = FindingNumberer(task.markers)
            next_number = 1
            texts: list[str] = []
            findings: list[Finding] = []
            for chunk, outcome in zip(chunks, outcomes):
                if not outcome.ok:
                    texts.append(chunk.text)
                    continue
                numbered, next_number = numberer.number_chunk(outcome.value, next_number)
                texts.append(numbered.text)
                findings.extend(numbered.findings)

        logger.info(f"{task.name}: {len(findings)} findings across {total} chunks ({failed} failed)")
        return MarkedDocument(text=merge_chunk_outputs(texts), findings=tuple(findings), failed_chunks=failed)

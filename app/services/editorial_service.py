# app/services/editorial_service.py
"""
Editorial service: runs the tasks selected in one request.

Tasks run concurrently and report through a shared EventSink. A failing
task emits one ``error`` event naming it and never affects its siblings.
``done`` is emitted exactly once, after every task has finished.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from datetime import date
from typing import Awaitable, Callable, Optional

from app.config import Settings, get_settings
from app.constants import OutputTokens, SocialPlatforms, TaskNames
from app.llm import get_llm_provider
from app.llm.base import LLMProvider
from app.llm.parsing import parse_json_object
from app.llm.prompts import build_headline_prompt, build_social_prompt
from app.logging_config import task_var, trace_id_var
from app.services.errors import InvalidRequestError, TaskParseError
from app.services.events import EventSink
from app.services.fact_checker import FactCheckPipeline, FactCheckStatus
from app.services.markup_pipeline import CLAIM_FLAG_TASK, COPY_EDIT_TASK, MarkupPipeline, MarkupTask
from app.services.pipeline_config import PipelineConfig
from app.services.web_search import BaseSearchClient, get_search_client

logger = logging.getLogger(__name__)

# Style guide field for each task, where it differs from the task name
STYLE_GUIDE_FIELDS = {TaskNames.SOCIAL: "socialMedia"}


@dataclass
class EditorialRequest:
    """One /api/process-stream invocation."""

    text: str
    tasks: dict[str, bool] = field(default_factory=dict)
    style_guides: dict[str, str] = field(default_factory=dict)
    confirmed: bool = False
    as_of: Optional[date] = None

    @property
    def selected_tasks(self) -> list[str]:
        return [name for name in TaskNames.ALL if self.tasks.get(name)]

    def style_guide_for(self, task: str) -> Optional[str]:
        return self.style_guides.get(STYLE_GUIDE_FIELDS.get(task, task)) or None


class EditorialService:
    """
    Entry point for every editorial task.

    Usage:
        service = EditorialService(provider, search_client)
        service.validate(request)
        await service.run(request, sink)
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
        self.markup = MarkupPipeline(provider, self.config)
        self.fact_checker = FactCheckPipeline(provider, search_client, self.config)

    @staticmethod
    def validate(request: EditorialRequest) -> None:
        """Reject requests that can't run before any external call is made."""
        if not request.text or not request.text.strip():
            raise InvalidRequestError("Article text is required")
        if not request.selected_tasks:
            raise InvalidRequestError("Select at least one task")

    async def run(self, request: EditorialRequest, sink: EventSink) -> None:
        self.validate(request)
        trace_id_var.set(uuid.uuid4().hex[:12])

        runners: dict[str, Callable[[EditorialRequest, EventSink], Awaitable[None]]] = {
            TaskNames.HEADLINES: self._run_headlines,
            TaskNames.SOCIAL: self._run_social,
            TaskNames.COPY_EDIT: self._run_copy_edit,
            TaskNames.CLAIM_FLAG: self._run_claim_flag,
            TaskNames.FACT_CHECK: self._run_fact_check,
        }
        selected = request.selected_tasks
        logger.info(f"Running tasks: {', '.join(selected)} on {len(request.text)} chars")

        try:
            await asyncio.gather(*(self._run_task(name, runners[name], request, sink) for name in selected))
        except Exception as e:
            logger.error(f"Processing error: {e}", exc_info=True)
            sink.error("general", str(e))
        finally:
            sink.done()

    async def _run_task(
        self,
        name: str,
        runner: Callable[[EditorialRequest, EventSink], Awaitable[None]],
        request: EditorialRequest,
        sink: EventSink,
    ) -> None:
        token = task_var.set(name)
        try:
            await runner(request, sink)
        except Exception as e:
            logger.error(f"Task {name} failed: {e}", exc_info=True)
            sink.error(name, str(e))
        finally:
            task_var.reset(token)

    # -------------------------------------------------------------------------
    # Headlines and social
    # -------------------------------------------------------------------------

    async def generate_headlines(self, text: str, style_guide: Optional[str] = None) -> list[dict]:
        reply = await self.provider.complete(
            build_headline_prompt(text, style_guide),
            max_tokens=OutputTokens.HEADLINES,
            call_type="headlines",
        )
        parsed = parse_json_object(reply)
        if not parsed.ok:
            raise TaskParseError(TaskNames.HEADLINES, parsed.reason)

        suggestions = parsed.data.get("suggestions")
        if not isinstance(suggestions, list):
            raise TaskParseError(TaskNames.HEADLINES, "missing suggestions list")
        pairs = [
            {"headline": str(s.get("headline", "")).strip(), "dek": str(s.get("dek", "")).strip()}
            for s in suggestions
            if isinstance(s, dict) and s.get("headline")
        ]
        if not pairs:
            raise TaskParseError(TaskNames.HEADLINES, "no headlines in reply")
        return pairs

    async def generate_social(self, text: str, platform: str, style_guide: Optional[str] = None) -> list[str]:
        if platform not in SocialPlatforms.ALL:
            raise InvalidRequestError(f"Unknown platform: {platform}")
        reply = await self.provider.complete(
            build_social_prompt(text, platform, style_guide),
            max_tokens=OutputTokens.SOCIAL,
            call_type=f"social_{platform}",
        )
        parsed = parse_json_object(reply)
        if not parsed.ok:
            raise TaskParseError(f"{platform} social", parsed.reason)

        suggestions = parsed.data.get("suggestions")
        if not isinstance(suggestions, list):
            raise TaskParseError(f"{platform} social", "missing suggestions list")
        return [str(s).strip() for s in suggestions if str(s).strip()]

    async def regenerate_headlines(self, text: str, style_guide: Optional[str] = None) -> list[dict]:
        if not text or not text.strip():
            raise InvalidRequestError("Article text is required")
        return await self.generate_headlines(text, style_guide)

    async def regenerate_social(self, text: str, platform: str, style_guide: Optional[str] = None) -> list[str]:
        if not text or not text.strip():
            raise InvalidRequestError("Article text is required")
        return await self.generate_social(text, platform, style_guide)

    # -------------------------------------------------------------------------
    # Task runners
    # -------------------------------------------------------------------------

    async def _run_headlines(self, request: EditorialRequest, sink: EventSink) -> None:
        sink.progress(TaskNames.HEADLINES, "Generating headline suggestions...")
        suggestions = await self.generate_headlines(
            request.text, request.style_guide_for(TaskNames.HEADLINES)
        )
        sink.result(TaskNames.HEADLINES, suggestions)

    async def _run_social(self, request: EditorialRequest, sink: EventSink) -> None:
        style_guide = request.style_guide_for(TaskNames.SOCIAL)

        async def one_platform(platform: str) -> None:
            sink.progress(TaskNames.SOCIAL, f"Generating {platform} posts...")
            try:
                suggestions = await self.generate_social(request.text, platform, style_guide)
            except Exception as e:
                logger.error(f"Social task for {platform} failed: {e}")
                sink.error(TaskNames.SOCIAL, f"{platform}: {e}")
                return
            sink.result(TaskNames.SOCIAL, {"platform": platform, "suggestions": suggestions})

        await asyncio.gather(*(one_platform(p) for p in SocialPlatforms.ALL))

    async def _run_markup(self, task: MarkupTask, request: EditorialRequest, sink: EventSink, message: str) -> None:
        sink.progress(task.name, message)
        document = await self.markup.run(task, request.text, request.style_guide_for(task.name), sink)
        sink.result(task.name, document.to_dict())

    async def _run_copy_edit(self, request: EditorialRequest, sink: EventSink) -> None:
        await self._run_markup(COPY_EDIT_TASK, request, sink, "Analyzing article for copy-editing...")

    async def _run_claim_flag(self, request: EditorialRequest, sink: EventSink) -> None:
        await self._run_markup(CLAIM_FLAG_TASK, request, sink, "Flagging claims to check...")

    async def _run_fact_check(self, request: EditorialRequest, sink: EventSink) -> None:
        sink.progress(TaskNames.FACT_CHECK, "Fact-checking article claims...")
        outcome = await self.fact_checker.run(
            request.text,
            sink,
            confirmed=request.confirmed,
            style_guide=request.style_guide_for(TaskNames.FACT_CHECK),
            as_of=request.as_of,
        )
        if outcome.status == FactCheckStatus.COMPLETED:
            sink.result(TaskNames.FACT_CHECK, outcome.report)

    async def close(self) -> None:
        await self.provider.close()
        if self.search_client is not None:
            await self.search_client.close()


def build_editorial_service(settings: Optional[Settings] = None) -> EditorialService:
    """Wire the service from settings (provider, optional search, pipeline knobs)."""
    settings = settings or get_settings()
    return EditorialService(
        provider=get_llm_provider(settings.LLM_PROVIDER),
        search_client=get_search_client(settings),
        config=PipelineConfig.from_settings(settings),
    )

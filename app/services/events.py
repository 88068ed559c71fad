"""
Progress events streamed back to the browser.

A pipeline run pushes immutable PipelineEvent records into an EventSink. The
HTTP layer drains the sink with ``async for`` and writes each event as one
SSE frame. The sink stops iterating after the ``done`` event.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, AsyncIterator, Optional

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    PROGRESS = "progress"
    RESULT = "result"
    ERROR = "error"
    CONFIRM_REQUIRED = "confirm_required"
    DONE = "done"


@dataclass(frozen=True)
class PipelineEvent:
    """One event in push order. ``task`` is None for request-level events."""

    type: EventType
    task: Optional[str] = None
    message: Optional[str] = None
    data: Any = None
    extra: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        payload: dict[str, Any] = {"type": self.type.value}
        if self.task is not None:
            payload["task"] = self.task
        if self.message is not None:
            # Browser reads error text from "error", everything else from "message"
            key = "error" if self.type == EventType.ERROR else "message"
            payload[key] = self.message
        if self.data is not None:
            payload["data"] = self.data
        payload.update(self.extra)
        return payload


class EventSink:
    """
    Ordered, single-consumer event channel with a replayable history.

    Producers call the typed helpers (progress, result, ...). Only the first
    ``done`` is delivered; later calls are ignored with a warning so a
    stream is never closed twice.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[PipelineEvent] = asyncio.Queue()
        self.history: list[PipelineEvent] = []
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def emit(self, event: PipelineEvent) -> None:
        if self._closed:
            logger.warning(f"Dropping {event.type.value} event after done")
            return
        if event.type == EventType.DONE:
            self._closed = True
        self.history.append(event)
        self._queue.put_nowait(event)

    def progress(self, task: Optional[str], message: str) -> None:
        self.emit(PipelineEvent(EventType.PROGRESS, task=task, message=message))

    def result(self, task: str, data: Any) -> None:
        self.emit(PipelineEvent(EventType.RESULT, task=task, data=data))

    def error(self, task: Optional[str], message: str) -> None:
        self.emit(PipelineEvent(EventType.ERROR, task=task, message=message))

    def confirm_required(self, task: str, claim_count: int, message: str) -> None:
        if any(e.type == EventType.CONFIRM_REQUIRED and e.task == task for e in self.history):
            logger.warning(f"Duplicate confirm_required for {task} ignored")
            return
        self.emit(
            PipelineEvent(
                EventType.CONFIRM_REQUIRED,
                task=task,
                message=message,
                extra={"claimCount": claim_count},
            )
        )

    def done(self) -> None:
        self.emit(PipelineEvent(EventType.DONE))

    def of_type(self, event_type: EventType) -> list[PipelineEvent]:
        return [e for e in self.history if e.type == event_type]

    async def __aiter__(self) -> AsyncIterator[PipelineEvent]:
        while True:
            event = await self._queue.get()
            yield event
            if event.type == EventType.DONE:
                return

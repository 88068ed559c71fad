# app/services/dispatcher.py
"""
Bounded fan-out for per-chunk and per-claim work.

Units are zero-argument callables returning awaitables. They run in
batches of ``batch_size`` (or all at once when it is None). Every unit in
a batch is started before any is awaited, and results come back in input
order regardless of completion order.

A failing unit never cancels its siblings or later batches; its exception
is captured on the UnitOutcome and the caller decides what degraded value
to use.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Sequence

logger = logging.getLogger(__name__)

Unit = Callable[[], Awaitable[Any]]
BatchCallback = Callable[[int, int], Awaitable[None]]


@dataclass(frozen=True)
class UnitOutcome:
    """Result of one unit: exactly one of value / error is meaningful."""

    index: int
    value: Any = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class Dispatcher:
    """
    Runs units in ordered batches.

    Usage:
        dispatcher = Dispatcher("verify", batch_size=3)
        outcomes = await dispatcher.run([lambda c=c: verify(c) for c in chunks])
    """

    def __init__(
        self,
        name: str,
        batch_size: Optional[int] = None,
        on_batch_complete: Optional[BatchCallback] = None,
    ):
        if batch_size is not None and batch_size < 1:
            raise ValueError("batch_size must be positive or None")
        self.name = name
        self.batch_size = batch_size
        self.on_batch_complete = on_batch_complete

    def _batches(self, units: Sequence[Unit]) -> list[list[tuple[int, Unit]]]:
        indexed = list(enumerate(units))
        size = self.batch_size or len(indexed) or 1
        return [indexed[i : i + size] for i in range(0, len(indexed), size)]

    @staticmethod
    def _start(unit: Unit) -> asyncio.Future:
        """Schedule one unit. A unit that fails before handing back an awaitable becomes a failed future."""
        try:
            return asyncio.ensure_future(unit())
        except Exception as e:
            future = asyncio.get_running_loop().create_future()
            future.set_exception(e)
            return future

    async def run(self, units: Sequence[Unit]) -> list[UnitOutcome]:
        outcomes: list[UnitOutcome] = []
        if not units:
            return outcomes

        batches = self._batches(units)
        start_time = time.time()
        failed = 0

        for batch_no, batch in enumerate(batches, start=1):
            tasks = [self._start(unit) for _, unit in batch]
            results = await asyncio.gather(*tasks, return_exceptions=True)

            for (index, _), result in zip(batch, results):
                if isinstance(result, BaseException):
                    failed += 1
                    logger.warning(
                        f"[{self.name}] unit {index} failed: {result}",
                        extra={"event": "unit_failed", "batch": batch_no},
                    )
                    outcomes.append(UnitOutcome(index=index, error=result))
                else:
                    outcomes.append(UnitOutcome(index=index, value=result))

            if self.on_batch_complete is not None:
                await self.on_batch_complete(len(outcomes), len(units))

        duration_ms = int((time.time() - start_time) * 1000)
        logger.info(
            f"[{self.name}] {len(units)} units in {len(batches)} batches ({failed} failed)",
            extra={"event": "dispatch_complete", "duration_ms": duration_ms, "failed": failed},
        )
        return outcomes

"""
Background Prefetch Scheduler.

Watches remaining buffer depth and tops up the main sequence before the
learner runs out of material. A refill is started when all of these hold:

- remaining depth is at or below the low-water mark
- no fetch (foreground or background) for the live buffer is in flight;
  a refill left over from an abandoned topic set does not count
- the wrong streak is below the remediation threshold, so the refill never
  races the dedicated remediation fetch

The refill runs as a fire-and-forget task; it only ever appends.
"""

from __future__ import annotations

import asyncio
from typing import Protocol, Sequence

from loguru import logger

from .buffer import BufferManager
from .difficulty import DifficultyController
from .models import Exercise, FetchState, FetchTicket, TopicRef


class ExerciseSource(Protocol):
    """Anything that can produce a batch of exercises."""

    async def generate(
        self,
        topics: Sequence[TopicRef],
        difficulty: int,
        count: int,
    ) -> list[Exercise]:
        ...


class PrefetchScheduler:
    """Non-blocking refills of the main exercise sequence."""

    def __init__(
        self,
        buffer: BufferManager,
        source: ExerciseSource,
        controller: DifficultyController,
        low_water_threshold: int = 3,
        batch_size: int = 5,
    ):
        self.buffer = buffer
        self.source = source
        self.controller = controller
        self.low_water_threshold = low_water_threshold
        self.batch_size = batch_size
        self._task: asyncio.Task | None = None
        self._ticket: FetchTicket | None = None
        self._tasks: set[asyncio.Task] = set()

    @property
    def in_flight(self) -> bool:
        """Whether a refill for the live buffer is still running."""
        return (
            self._task is not None
            and not self._task.done()
            and self._ticket is not None
            and self.buffer.is_current(self._ticket)
        )

    def should_prefetch(self) -> bool:
        """Check every trigger condition against the current buffer."""
        return (
            self.buffer.remaining_count() <= self.low_water_threshold
            and self.buffer.fetch_state is FetchState.IDLE
            and not self.in_flight
            and not self.controller.remediation_pending(self.buffer.consecutive_wrong)
        )

    def maybe_prefetch(self, topics: Sequence[TopicRef]) -> asyncio.Task | None:
        """
        Start a background refill if the trigger conditions hold.

        Must be called from a running event loop. A call while a refill is
        already outstanding is a no-op.

        Returns:
            The refill task, or None if nothing was started
        """
        if not topics or not self.should_prefetch():
            return None

        ticket = self.buffer.issue_ticket(FetchState.FETCHING_BACKGROUND)
        logger.debug(
            "Remaining depth {} <= {}, prefetching {} exercises at level {}",
            self.buffer.remaining_count(),
            self.low_water_threshold,
            self.batch_size,
            ticket.difficulty,
        )
        self._ticket = ticket
        self._task = asyncio.create_task(self._refill(list(topics), ticket))
        self._tasks.add(self._task)
        self._task.add_done_callback(self._tasks.discard)
        self._task.add_done_callback(_log_task_error)
        return self._task

    async def _refill(self, topics: list[TopicRef], ticket: FetchTicket) -> int:
        try:
            batch = await self.source.generate(topics, ticket.difficulty, self.batch_size)
        finally:
            self.buffer.release(ticket)

        if not self.buffer.is_current(ticket):
            logger.info("Discarding {} prefetched exercises for a stale topic set", len(batch))
            return 0
        added = self.buffer.append(batch)
        logger.debug("Prefetch appended {} exercises", added)
        return added

    async def wait(self) -> None:
        """Wait for outstanding refills, stale ones included (used on shutdown and in tests)."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


def _log_task_error(task: asyncio.Task) -> None:
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        logger.error("Background exercise fetch crashed: {!r}", error)

"""
Exercise Buffer Manager.

Owns the ordered queue of upcoming exercises for one topic selection:
- Main sequence with a cursor (what the learner has seen / will see)
- Pending sequence of priority material (easier remediation exercises)
- Difficulty level, streak counters and the fetch state

All mutation goes through the commands below. None of them awaits, so on a
single event loop two commands can never interleave and a background append
cannot be lost against a foreground advance.
"""

from __future__ import annotations

from typing import Iterable

from loguru import logger

from .models import (
    BufferSnapshot,
    BufferState,
    Exercise,
    FetchState,
    FetchTicket,
    clamp_difficulty,
)


class BufferManager:
    """Single-writer container for the learner's BufferState."""

    def __init__(self, topic_hash: str = "", difficulty: int = 5):
        self._state = BufferState(
            topic_hash=topic_hash,
            difficulty=clamp_difficulty(difficulty),
        )
        self._epoch = 0
        self._serial = 0
        self._owner = 0

    # =========================================================================
    # Queries
    # =========================================================================

    @property
    def topic_hash(self) -> str:
        return self._state.topic_hash

    @property
    def difficulty(self) -> int:
        return self._state.difficulty

    @property
    def fetch_state(self) -> FetchState:
        return self._state.fetch_state

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def consecutive_correct(self) -> int:
        return self._state.consecutive_correct

    @property
    def consecutive_wrong(self) -> int:
        return self._state.consecutive_wrong

    def current(self) -> Exercise | None:
        """Exercise at the cursor, or None if nothing has been loaded yet."""
        state = self._state
        if state.cursor < len(state.exercises):
            return state.exercises[state.cursor]
        return None

    def remaining_count(self) -> int:
        """Unserved exercises: main tail from the cursor plus pending."""
        state = self._state
        return len(state.exercises) - state.cursor + len(state.pending)

    def upcoming(self, limit: int = 5) -> list[Exercise]:
        """Preview of what advance() will serve next, in order."""
        state = self._state
        after_cursor = state.exercises[state.cursor + 1:]
        return (list(state.pending) + after_cursor)[:limit]

    def snapshot(self) -> BufferSnapshot:
        state = self._state
        return BufferSnapshot(
            topic_hash=state.topic_hash,
            difficulty=state.difficulty,
            cursor=state.cursor,
            main_length=len(state.exercises),
            pending_length=len(state.pending),
            remaining=self.remaining_count(),
            consecutive_correct=state.consecutive_correct,
            consecutive_wrong=state.consecutive_wrong,
            fetch_state=state.fetch_state,
        )

    # =========================================================================
    # Commands
    # =========================================================================

    def advance(self) -> Exercise | None:
        """
        Move to the next exercise.

        If pending material exists its head is spliced into the main sequence
        right after the current exercise, so it is served next while the
        previously queued material stays behind it. Otherwise the cursor moves
        forward (never past the end of the main sequence).

        Returns:
            The new current exercise, or None if the buffer ran dry
        """
        state = self._state
        if state.pending:
            head = state.pending.pop(0)
            if state.cursor < len(state.exercises):
                state.cursor += 1
            state.exercises.insert(state.cursor, head)
            logger.debug("Serving pending exercise {} ahead of main queue", head.id)
        elif state.cursor < len(state.exercises):
            state.cursor += 1
        return self.current()

    def append(self, batch: Iterable[Exercise]) -> int:
        """Append fetched exercises to the tail of the main sequence."""
        items = list(batch)
        self._state.exercises.extend(items)
        return len(items)

    def inject_pending(self, batch: Iterable[Exercise]) -> int:
        """Append fetched exercises to the tail of the pending sequence."""
        items = list(batch)
        self._state.pending.extend(items)
        return len(items)

    def reset(self, topic_hash: str, difficulty: int = 5) -> None:
        """Discard the whole state for a new topic selection."""
        if self._state.topic_hash != topic_hash:
            logger.info(
                "Topic set changed ({} -> {}), discarding buffer",
                self._state.topic_hash[:8] or "-",
                topic_hash[:8] or "-",
            )
        self._state = BufferState(
            topic_hash=topic_hash,
            difficulty=clamp_difficulty(difficulty),
        )
        self._epoch += 1
        self._owner = 0

    def issue_ticket(self, kind: FetchState) -> FetchTicket:
        """
        Mark a fetch of the given kind as in flight.

        A foreground fetch takes over the state even while a background
        fetch is outstanding; the background completion then leaves it alone.
        """
        if kind is FetchState.IDLE:
            raise ValueError("cannot issue a ticket for the idle state")
        self._serial += 1
        self._owner = self._serial
        self._state.fetch_state = kind
        return FetchTicket(
            topic_hash=self._state.topic_hash,
            epoch=self._epoch,
            kind=kind,
            difficulty=self._state.difficulty,
            serial=self._serial,
        )

    def is_current(self, ticket: FetchTicket) -> bool:
        """Whether a fetch was issued for the buffer that is still live."""
        return ticket.epoch == self._epoch and ticket.topic_hash == self._state.topic_hash

    def release(self, ticket: FetchTicket) -> None:
        """Clear the in-flight state if this fetch still owns it."""
        if self.is_current(ticket) and ticket.serial == self._owner:
            self._state.fetch_state = FetchState.IDLE
            self._owner = 0

    def record_streaks(self, consecutive_correct: int, consecutive_wrong: int, difficulty: int) -> None:
        """Commit counters and level computed by the difficulty controller."""
        if consecutive_correct > 0 and consecutive_wrong > 0:
            raise ValueError("correct and wrong streaks cannot both be positive")
        state = self._state
        state.consecutive_correct = consecutive_correct
        state.consecutive_wrong = consecutive_wrong
        state.difficulty = clamp_difficulty(difficulty)

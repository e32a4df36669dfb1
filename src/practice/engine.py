"""
Adaptive Practice Engine.

Keeps a continuous stream of exercises in front of one learner.

Answer commit (runs without suspending, so the next advance always sees the
fully updated state):
1. Evaluate the answer against the current exercise
2. Score it (formal or live XP formula)
3. Update streak counters and maybe the difficulty level
4. After a wrong streak, issue the remediation fetch for easier exercises

Fetches (initial load, background refill, remediation) are tagged with the
buffer they were issued for; results arriving after the topic set changed
are dropped.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Sequence

from loguru import logger

from config import Settings, get_settings

from .buffer import BufferManager
from .difficulty import DifficultyConfig, DifficultyController, DifficultyTransition
from .errors import GenerationFailure, PracticeEngineError, RemediationGenerationFailure
from .evaluator import EvaluationResult, evaluate_exercise
from .models import AnswerOutcome, Exercise, FetchState, FetchTicket, TopicRef, topic_set_hash
from .prefetch import ExerciseSource, PrefetchScheduler
from .scoring import ScoringMode, level_for_xp, score_answer
from .telemetry import PracticeTelemetry, TaskRecord


@dataclass
class EngineConfig:
    """Tunable knobs of the practice engine."""

    batch_size: int = 5
    low_water_threshold: int = 3
    remediation_batch_size: int = 5
    correct_streak_threshold: int = 3
    wrong_streak_threshold: int = 3
    initial_difficulty: int = 5
    scoring_mode: ScoringMode = ScoringMode.LIVE
    live_streak_bonus: int = 5

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "EngineConfig":
        practice = (settings or get_settings()).get_practice_config()
        return cls(
            batch_size=practice["batch_size"],
            low_water_threshold=practice["low_water_threshold"],
            remediation_batch_size=practice["remediation_batch_size"],
            correct_streak_threshold=practice["correct_streak_threshold"],
            wrong_streak_threshold=practice["wrong_streak_threshold"],
            initial_difficulty=practice["initial_difficulty"],
            scoring_mode=ScoringMode(practice["scoring_mode"]),
            live_streak_bonus=practice["live_streak_bonus"],
        )


@dataclass
class SessionStats:
    """Running totals for the current topic selection."""

    total_answered: int = 0
    correct: int = 0
    skipped: int = 0
    xp_earned: int = 0
    streak: int = 0

    @property
    def accuracy(self) -> float:
        if self.total_answered == 0:
            return 0.0
        return self.correct / self.total_answered * 100

    @property
    def level(self) -> int:
        return level_for_xp(self.xp_earned)


@dataclass(frozen=True)
class AnswerReport:
    """Everything the UI needs after one answer commit."""

    exercise: Exercise
    outcome: AnswerOutcome
    transition: DifficultyTransition | None
    evaluation: EvaluationResult | None = None
    remediation_started: bool = False

    @property
    def feedback(self) -> str:
        if self.evaluation is None:
            return "Question skipped"
        return self.evaluation.feedback


class PracticeEngine:
    """
    Orchestrates buffer, difficulty adaptation, prefetch and scoring.

    Must be driven from a single asyncio event loop.
    """

    def __init__(
        self,
        source: ExerciseSource,
        config: EngineConfig | None = None,
        telemetry: PracticeTelemetry | None = None,
    ):
        self.config = config or EngineConfig()
        self.source = source
        self.telemetry = telemetry or PracticeTelemetry()
        self.buffer = BufferManager(difficulty=self.config.initial_difficulty)
        self.controller = DifficultyController(
            DifficultyConfig(
                correct_streak_threshold=self.config.correct_streak_threshold,
                wrong_streak_threshold=self.config.wrong_streak_threshold,
                remediation_batch_size=self.config.remediation_batch_size,
            )
        )
        self.prefetcher = PrefetchScheduler(
            self.buffer,
            source,
            self.controller,
            low_water_threshold=self.config.low_water_threshold,
            batch_size=self.config.batch_size,
        )
        self.topics: list[TopicRef] = []
        self.stats = SessionStats()
        self._tasks: set[asyncio.Task] = set()
        self._answered = False

    # =========================================================================
    # Topic Selection
    # =========================================================================

    def select_topics(self, topics: Sequence[TopicRef]) -> bool:
        """
        Switch to a topic set.

        Returns:
            True if the buffer was rebuilt, False if the set is unchanged
        """
        new_hash = topic_set_hash(topics)
        if self.topics and new_hash == self.buffer.topic_hash:
            return False

        self.topics = list(topics)
        self.buffer.reset(new_hash if self.topics else "", self.config.initial_difficulty)
        self.stats = SessionStats()
        self._answered = False
        logger.info("Selected {} topic(s), buffer rebuilt", len(self.topics))
        return True

    # =========================================================================
    # Serving
    # =========================================================================

    def current(self) -> Exercise | None:
        return self.buffer.current()

    async def load(self) -> Exercise | None:
        """
        Make sure an exercise is available, fetching in the foreground if the
        buffer is empty. This is the only place the learner waits.
        """
        if not self.topics:
            return None

        if self.buffer.remaining_count() == 0:
            if self.buffer.fetch_state is FetchState.IDLE:
                ticket = self.buffer.issue_ticket(FetchState.FETCHING_FOREGROUND)
                await self._fetch(ticket, list(self.topics), self.config.batch_size)
            else:
                await self.wait_for_fetches()

        if self.buffer.current() is None and self.buffer.remaining_count() > 0:
            self.buffer.advance()
            self._answered = False
        self.prefetcher.maybe_prefetch(self.topics)
        return self.buffer.current()

    def next_exercise(self) -> Exercise | None:
        """Advance to the next exercise without blocking; may start a refill."""
        exercise = self.buffer.advance()
        self._answered = False
        self.prefetcher.maybe_prefetch(self.topics)
        return exercise

    # =========================================================================
    # Answer Commit
    # =========================================================================

    def submit_answer(
        self,
        answer: Any = None,
        hints_used: int = 0,
        time_spent: float = 0.0,
        skipped: bool = False,
    ) -> AnswerReport:
        """
        Commit one answer for the current exercise.

        Args:
            answer: Option id (multiple choice) or list of step answers
            hints_used: Number of hints revealed
            time_spent: Seconds spent on the exercise
            skipped: Whether the learner skipped it

        Returns:
            AnswerReport with evaluation, XP and difficulty transition

        Raises:
            PracticeEngineError: If there is no current exercise, or it was
                already answered
            EvaluationFailure: If the exercise data cannot be evaluated
        """
        exercise = self.buffer.current()
        if exercise is None:
            raise PracticeEngineError("no exercise to answer")
        if self._answered:
            raise PracticeEngineError(f"exercise {exercise.id} was already answered")

        evaluation = None if skipped else evaluate_exercise(exercise, answer)
        is_correct = evaluation is not None and evaluation.is_correct

        mode = self.config.scoring_mode
        outcome = score_answer(
            mode,
            difficulty=exercise.difficulty if mode is ScoringMode.FORMAL else self.buffer.difficulty,
            hints_used=hints_used,
            time_spent_seconds=time_spent,
            was_skipped=skipped,
            was_correct=is_correct,
            correct_streak=self.stats.streak,
            live_streak_bonus=self.config.live_streak_bonus,
        )

        transition = None
        remediation_started = False
        if skipped:
            self.stats.skipped += 1
        else:
            transition = self.controller.apply(
                is_correct,
                self.buffer.difficulty,
                self.buffer.consecutive_correct,
                self.buffer.consecutive_wrong,
            )
            self.buffer.record_streaks(
                transition.consecutive_correct,
                transition.consecutive_wrong,
                transition.level,
            )
            if transition.remediation_requested:
                ticket = self.buffer.issue_ticket(FetchState.FETCHING_FOREGROUND)
                self._spawn(self._remediate(ticket, list(self.topics), transition.remediation_batch_size))
                remediation_started = True

        self._answered = True
        self._update_stats(outcome, skipped)
        self.telemetry.record(
            TaskRecord(
                exercise_id=exercise.id,
                topic=f"{exercise.topic}|{exercise.subtopic}",
                difficulty=exercise.difficulty,
                correct=is_correct,
                time_spent=time_spent,
                hints_used=hints_used,
                xp_earned=outcome.xp_awarded,
                skipped=skipped,
                offline=exercise.offline,
            )
        )
        return AnswerReport(
            exercise=exercise,
            outcome=outcome,
            transition=transition,
            evaluation=evaluation,
            remediation_started=remediation_started,
        )

    def _update_stats(self, outcome: AnswerOutcome, skipped: bool) -> None:
        stats = self.stats
        stats.total_answered += 1
        stats.xp_earned += outcome.xp_awarded
        if skipped:
            return
        if outcome.is_correct:
            stats.correct += 1
            stats.streak += 1
        else:
            stats.streak = 0

    # =========================================================================
    # Fetching
    # =========================================================================

    async def _fetch(
        self,
        ticket: FetchTicket,
        topics: list[TopicRef],
        count: int,
        pending: bool = False,
    ) -> int:
        try:
            batch = await self.source.generate(topics, ticket.difficulty, count)
        finally:
            self.buffer.release(ticket)

        if not self.buffer.is_current(ticket):
            logger.info("Discarding {} exercises fetched for a stale topic set", len(batch))
            return 0
        if pending:
            return self.buffer.inject_pending(batch)
        return self.buffer.append(batch)

    async def _remediate(self, ticket: FetchTicket, topics: list[TopicRef], count: int) -> int:
        try:
            return await self._fetch(ticket, topics, count, pending=True)
        except GenerationFailure as e:
            failure = RemediationGenerationFailure(e.reason)
            logger.warning(
                "{}; difficulty stays at {}, serving queued exercises",
                failure,
                self.buffer.difficulty,
            )
            return 0

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._task_finished)
        return task

    def _task_finished(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Exercise fetch crashed: {!r}", task.exception())

    async def wait_for_fetches(self) -> None:
        """Wait until every outstanding fetch has completed."""
        while self._tasks or self.prefetcher.in_flight:
            if self._tasks:
                await asyncio.gather(*list(self._tasks), return_exceptions=True)
            await self.prefetcher.wait()

    async def close(self) -> None:
        """Cancel outstanding fetches."""
        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
        await self.prefetcher.wait()

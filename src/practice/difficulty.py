"""
Difficulty Adaptation Controller.

A small state machine over (difficulty, consecutive correct, consecutive wrong):
- 3 correct in a row -> difficulty + 1 (max 10)
- 3 wrong in a row   -> difficulty - 2 (min 1) and a remediation batch
  of easier exercises is requested at the new level

The asymmetry pulls a struggling learner toward easier material faster than
a thriving learner is pushed toward harder material. The level changes
immediately; a failed remediation fetch does not roll it back.
"""

from __future__ import annotations

from dataclasses import dataclass

from loguru import logger

from .models import MAX_DIFFICULTY, MIN_DIFFICULTY


@dataclass(frozen=True)
class DifficultyConfig:
    """Thresholds and step sizes for difficulty adaptation."""

    correct_streak_threshold: int = 3
    wrong_streak_threshold: int = 3
    escalate_step: int = 1
    deescalate_step: int = 2
    remediation_batch_size: int = 5


@dataclass(frozen=True)
class DifficultyTransition:
    """Result of applying one answer event."""

    previous_level: int
    level: int
    consecutive_correct: int
    consecutive_wrong: int
    remediation_requested: bool = False
    remediation_batch_size: int = 0

    @property
    def escalated(self) -> bool:
        return self.level > self.previous_level

    @property
    def deescalated(self) -> bool:
        return self.level < self.previous_level


class DifficultyController:
    """Maps answer streaks to difficulty-level transitions."""

    def __init__(self, config: DifficultyConfig | None = None):
        self.config = config or DifficultyConfig()

    def apply(
        self,
        is_correct: bool,
        level: int,
        consecutive_correct: int,
        consecutive_wrong: int,
    ) -> DifficultyTransition:
        """
        Evaluate one answer against the current counters.

        Args:
            is_correct: Whether the answer was correct
            level: Current difficulty level
            consecutive_correct: Current correct streak
            consecutive_wrong: Current wrong streak

        Returns:
            DifficultyTransition with the new level and counters
        """
        cfg = self.config
        if is_correct:
            correct = consecutive_correct + 1
            new_level = level
            if correct >= cfg.correct_streak_threshold:
                new_level = min(MAX_DIFFICULTY, level + cfg.escalate_step)
                correct = 0
                logger.info("Correct streak reached, difficulty {} -> {}", level, new_level)
            return DifficultyTransition(
                previous_level=level,
                level=new_level,
                consecutive_correct=correct,
                consecutive_wrong=0,
            )

        wrong = consecutive_wrong + 1
        if wrong < cfg.wrong_streak_threshold:
            return DifficultyTransition(
                previous_level=level,
                level=level,
                consecutive_correct=0,
                consecutive_wrong=wrong,
            )

        new_level = max(MIN_DIFFICULTY, level - cfg.deescalate_step)
        logger.info(
            "Wrong streak reached, difficulty {} -> {}, requesting {} easier exercises",
            level,
            new_level,
            cfg.remediation_batch_size,
        )
        return DifficultyTransition(
            previous_level=level,
            level=new_level,
            consecutive_correct=0,
            consecutive_wrong=0,
            remediation_requested=True,
            remediation_batch_size=cfg.remediation_batch_size,
        )

    def remediation_pending(self, consecutive_wrong: int) -> bool:
        """Whether the wrong streak has reached the remediation threshold."""
        return consecutive_wrong >= self.config.wrong_streak_threshold

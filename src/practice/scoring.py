"""
XP Scoring Engine.

Two distinct formulas, selected by ScoringMode:

FORMAL (scored session):
    base    = BASE_XP[difficulty]
    xp      = base * HINT_MULTIPLIER[min(hints, 3)]
    + 20% of base if answered in under half the expected time (difficulty * 60s)
    + 50% of the running xp for a streak of 5+
    total   = round(xp)

LIVE (continuous feed):
    xp      = max(5, 10 + difficulty * 2 - hints * 5) + flat streak bonus

Skipped answers always earn 0 (the hint penalty cancels the base), wrong
answers earn 0 with an all-zero breakdown.
"""

from __future__ import annotations

import math
from enum import Enum

from .models import AnswerOutcome, XPBreakdown

# =============================================================================
# Tables
# =============================================================================

BASE_XP = {
    1: 10,
    2: 15,
    3: 20,
    4: 30,
    5: 50,
    6: 60,
    7: 75,
    8: 90,
    9: 110,
    10: 130,
}
DEFAULT_BASE_XP = 20

HINT_MULTIPLIER = {
    0: 1.00,
    1: 0.85,
    2: 0.65,
    3: 0.40,
}

SECONDS_PER_DIFFICULTY = 60
FAST_ANSWER_RATIO = 0.5
TIME_BONUS_RATE = 0.20
STREAK_BONUS_THRESHOLD = 5
STREAK_BONUS_RATE = 0.50

LIVE_MIN_XP = 5
LIVE_BASE_XP = 10
LIVE_XP_PER_DIFFICULTY = 2
LIVE_HINT_COST = 5
LIVE_STREAK_THRESHOLD = 3
LIVE_STREAK_BONUS = 5

# XP required to reach each level (level N starts at LEVEL_THRESHOLDS[N - 1])
LEVEL_THRESHOLDS = [0, 100, 300, 600, 1000, 1500, 2100, 2800, 3600, 4500, 5500]


class ScoringMode(str, Enum):
    """XP formula in use."""

    FORMAL = "formal"  # Tiered formula of a scored session
    LIVE = "live"  # Lightweight formula of the continuous feed


def round_half_up(value: float) -> int:
    """Round like Math.round (x.5 goes up) instead of banker's rounding."""
    return int(math.floor(value + 0.5))


def base_xp_for(difficulty: int) -> int:
    return BASE_XP.get(difficulty, DEFAULT_BASE_XP)


# =============================================================================
# Formal Mode
# =============================================================================


def score_formal(
    difficulty: int,
    hints_used: int,
    time_spent_seconds: float,
    was_skipped: bool,
    was_correct: bool,
    correct_streak: int,
) -> AnswerOutcome:
    """
    Compute XP for one answer in a scored session.

    Args:
        difficulty: Exercise difficulty (tier)
        hints_used: Number of hints revealed
        time_spent_seconds: Time spent on the exercise (0 = unknown)
        was_skipped: Whether the learner skipped the exercise
        was_correct: Whether the answer was correct
        correct_streak: Correct answers in a row before this one

    Returns:
        AnswerOutcome with the rounded total and display breakdown
    """
    base = base_xp_for(difficulty)

    if was_skipped:
        return AnswerOutcome(
            is_correct=False,
            xp_awarded=0,
            breakdown=XPBreakdown(base=base, hint_penalty=-base, total=0),
            mode=ScoringMode.FORMAL.value,
            skipped=True,
        )

    if not was_correct:
        return AnswerOutcome(
            is_correct=False,
            xp_awarded=0,
            breakdown=XPBreakdown(),
            mode=ScoringMode.FORMAL.value,
        )

    multiplier = HINT_MULTIPLIER[min(max(hints_used, 0), 3)]
    xp = base * multiplier
    hint_penalty = base * (1 - multiplier)

    time_bonus = 0.0
    expected_time = difficulty * SECONDS_PER_DIFFICULTY
    if time_spent_seconds and time_spent_seconds < expected_time * FAST_ANSWER_RATIO:
        time_bonus = base * TIME_BONUS_RATE
        xp += time_bonus

    # Applied to the running total, after the time bonus
    streak_bonus = 0.0
    if correct_streak >= STREAK_BONUS_THRESHOLD:
        streak_bonus = xp * STREAK_BONUS_RATE
        xp += streak_bonus

    total = round_half_up(xp)
    return AnswerOutcome(
        is_correct=True,
        xp_awarded=total,
        breakdown=XPBreakdown(
            base=base,
            hint_penalty=-round_half_up(hint_penalty),
            time_bonus=round_half_up(time_bonus),
            streak_bonus=round_half_up(streak_bonus),
            total=total,
        ),
        mode=ScoringMode.FORMAL.value,
    )


# =============================================================================
# Live Mode
# =============================================================================


def score_live(
    difficulty: int,
    hints_used: int,
    was_skipped: bool,
    was_correct: bool,
    correct_streak: int,
    streak_bonus: int = LIVE_STREAK_BONUS,
) -> AnswerOutcome:
    """Compute XP for one answer in the continuous practice feed."""
    base = LIVE_BASE_XP + difficulty * LIVE_XP_PER_DIFFICULTY

    if was_skipped:
        return AnswerOutcome(
            is_correct=False,
            xp_awarded=0,
            breakdown=XPBreakdown(base=base, hint_penalty=-base, total=0),
            mode=ScoringMode.LIVE.value,
            skipped=True,
        )

    if not was_correct:
        return AnswerOutcome(
            is_correct=False,
            xp_awarded=0,
            breakdown=XPBreakdown(),
            mode=ScoringMode.LIVE.value,
        )

    xp = max(LIVE_MIN_XP, base - max(hints_used, 0) * LIVE_HINT_COST)
    bonus = streak_bonus if correct_streak >= LIVE_STREAK_THRESHOLD else 0
    total = xp + bonus
    return AnswerOutcome(
        is_correct=True,
        xp_awarded=total,
        breakdown=XPBreakdown(
            base=base,
            hint_penalty=xp - base,
            streak_bonus=bonus,
            total=total,
        ),
        mode=ScoringMode.LIVE.value,
    )


def score_answer(
    mode: ScoringMode,
    difficulty: int,
    hints_used: int,
    time_spent_seconds: float,
    was_skipped: bool,
    was_correct: bool,
    correct_streak: int,
    live_streak_bonus: int = LIVE_STREAK_BONUS,
) -> AnswerOutcome:
    """Dispatch to the formula of the given mode."""
    if mode is ScoringMode.FORMAL:
        return score_formal(
            difficulty, hints_used, time_spent_seconds, was_skipped, was_correct, correct_streak
        )
    return score_live(
        difficulty, hints_used, was_skipped, was_correct, correct_streak, live_streak_bonus
    )


# =============================================================================
# Levels
# =============================================================================


def level_for_xp(xp: int) -> int:
    """Learner level reached with the given XP total (1-based)."""
    for index in range(len(LEVEL_THRESHOLDS) - 1, -1, -1):
        if xp >= LEVEL_THRESHOLDS[index]:
            return index + 1
    return 1


def xp_to_next_level(xp: int) -> int:
    """XP still missing for the next level (0 at the top level)."""
    level = level_for_xp(xp)
    if level >= len(LEVEL_THRESHOLDS):
        return 0
    return LEVEL_THRESHOLDS[level] - xp


def level_progress(xp: int) -> float:
    """Progress through the current level in percent."""
    level = level_for_xp(xp)
    current_floor = LEVEL_THRESHOLDS[level - 1]
    if level >= len(LEVEL_THRESHOLDS):
        return 100.0
    span = LEVEL_THRESHOLDS[level] - current_floor
    return (xp - current_floor) / span * 100

"""
Unit tests for XP scoring.

Covers both formulas (formal session and live feed), the skip and wrong
answer laws, half-up display rounding and learner levels.

Run: pytest tests/unit/test_scoring.py -v
"""

import pytest

from src.practice.scoring import (
    BASE_XP,
    DEFAULT_BASE_XP,
    ScoringMode,
    base_xp_for,
    level_for_xp,
    level_progress,
    round_half_up,
    score_answer,
    score_formal,
    score_live,
    xp_to_next_level,
)


class TestRoundHalfUp:
    """Test round_half_up function."""

    @pytest.mark.parametrize(
        "value,expected",
        [(10.5, 11), (31.5, 32), (2.5, 3), (2.4, 2), (0.0, 0), (16.999999, 17)],
    )
    def test_rounds_half_up(self, value, expected):
        assert round_half_up(value) == expected


class TestFormalScoring:
    """Test score_formal function."""

    def test_worked_example(self):
        """Difficulty 3, one hint, fast, streak of 5."""
        outcome = score_formal(
            difficulty=3,
            hints_used=1,
            time_spent_seconds=60,
            was_skipped=False,
            was_correct=True,
            correct_streak=5,
        )

        assert outcome.is_correct is True
        assert outcome.breakdown.base == 20
        assert outcome.breakdown.hint_penalty == -3
        assert outcome.breakdown.time_bonus == 4
        assert outcome.breakdown.streak_bonus == 11
        assert outcome.breakdown.total == 32
        assert outcome.xp_awarded == 32
        assert outcome.mode == "formal"

    def test_plain_correct_answer_earns_base(self):
        outcome = score_formal(5, 0, 0, False, True, 0)
        assert outcome.xp_awarded == 50
        assert outcome.breakdown.time_bonus == 0
        assert outcome.breakdown.streak_bonus == 0

    def test_slow_answer_gets_no_time_bonus(self):
        """Expected time is difficulty * 60s; bonus only under half of it."""
        outcome = score_formal(3, 0, 90, False, True, 0)
        assert outcome.breakdown.time_bonus == 0
        assert outcome.xp_awarded == 20

    def test_unknown_time_gets_no_time_bonus(self):
        outcome = score_formal(3, 0, 0, False, True, 0)
        assert outcome.breakdown.time_bonus == 0

    def test_streak_below_five_gets_no_bonus(self):
        outcome = score_formal(3, 0, 0, False, True, 4)
        assert outcome.breakdown.streak_bonus == 0
        assert outcome.xp_awarded == 20

    @pytest.mark.parametrize("hints,expected", [(0, 50), (1, 43), (2, 33), (3, 20), (7, 20)])
    def test_hint_multiplier(self, hints, expected):
        """Hints beyond three are capped at the three-hint multiplier."""
        outcome = score_formal(5, hints, 0, False, True, 0)
        assert outcome.xp_awarded == expected

    def test_skipped_earns_zero(self):
        outcome = score_formal(4, 0, 10, True, False, 10)

        assert outcome.skipped is True
        assert outcome.xp_awarded == 0
        assert outcome.breakdown.base == 30
        assert outcome.breakdown.hint_penalty == -30
        assert outcome.breakdown.total == 0

    def test_wrong_earns_zero_with_empty_breakdown(self):
        outcome = score_formal(8, 0, 10, False, False, 10)

        assert outcome.is_correct is False
        assert outcome.xp_awarded == 0
        assert outcome.breakdown.to_dict() == {
            "base": 0,
            "hintPenalty": 0,
            "timeBonus": 0,
            "streakBonus": 0,
            "total": 0,
        }

    def test_base_table(self):
        assert [base_xp_for(d) for d in range(1, 11)] == [BASE_XP[d] for d in range(1, 11)]
        assert base_xp_for(42) == DEFAULT_BASE_XP


class TestLiveScoring:
    """Test score_live function."""

    def test_correct_answer(self):
        outcome = score_live(5, 0, False, True, 0)
        assert outcome.xp_awarded == 20
        assert outcome.mode == "live"

    def test_hints_reduce_to_minimum(self):
        outcome = score_live(1, 3, False, True, 0)
        assert outcome.xp_awarded == 5
        assert outcome.breakdown.hint_penalty == 5 - 12

    def test_streak_bonus_from_three(self):
        assert score_live(5, 0, False, True, 2).xp_awarded == 20
        outcome = score_live(5, 0, False, True, 3)
        assert outcome.xp_awarded == 25
        assert outcome.breakdown.streak_bonus == 5

    def test_custom_streak_bonus(self):
        assert score_live(5, 0, False, True, 3, streak_bonus=8).xp_awarded == 28

    def test_skipped_and_wrong_earn_zero(self):
        assert score_live(5, 0, True, False, 3).xp_awarded == 0
        assert score_live(5, 0, False, False, 3).xp_awarded == 0


class TestScoreAnswer:
    """Test mode dispatch."""

    def test_modes_differ(self):
        formal = score_answer(ScoringMode.FORMAL, 5, 0, 0, False, True, 0)
        live = score_answer(ScoringMode.LIVE, 5, 0, 0, False, True, 0)

        assert formal.xp_awarded == 50
        assert live.xp_awarded == 20

    def test_deterministic(self):
        first = score_answer(ScoringMode.FORMAL, 7, 2, 30, False, True, 6)
        second = score_answer(ScoringMode.FORMAL, 7, 2, 30, False, True, 6)
        assert first == second


class TestLevels:
    """Test level helpers."""

    @pytest.mark.parametrize(
        "xp,level",
        [(0, 1), (99, 1), (100, 2), (299, 2), (300, 3), (5499, 10), (5500, 11), (99999, 11)],
    )
    def test_level_for_xp(self, xp, level):
        assert level_for_xp(xp) == level

    def test_xp_to_next_level(self):
        assert xp_to_next_level(150) == 150
        assert xp_to_next_level(6000) == 0

    def test_level_progress(self):
        assert level_progress(200) == pytest.approx(50.0)
        assert level_progress(0) == pytest.approx(0.0)
        assert level_progress(6000) == pytest.approx(100.0)

"""
Unit tests for answer evaluation.

Tests the semantic comparison of math answers:
- Exact matches after symbol normalisation
- Numeric values, fractions and simple arithmetic within tolerance
- Symbolic equivalence of algebraic answers (and rejection of different ones)
- Misconception detection for wrong numeric answers
- The stateless evaluate_answer contract

Run: pytest tests/unit/test_evaluator.py -v
"""

import pytest

from src.practice.errors import EvaluationFailure
from src.practice.evaluator import (
    check_equivalence,
    detect_misconceptions,
    evaluate_answer,
    evaluate_exercise,
    evaluate_to_number,
    normalize_expression,
)


class TestNormalizeExpression:
    """Test normalize_expression function."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            (" 2 × 3 ", "2*3"),
            ("x²", "x^2"),
            ("2x", "2*x"),
            ("3,5", "3.5"),
            ("+4", "4"),
            (None, ""),
        ],
    )
    def test_normalize(self, raw, expected):
        assert normalize_expression(raw) == expected


class TestEvaluateToNumber:
    """Test evaluate_to_number function."""

    @pytest.mark.parametrize(
        "expr,value",
        [("6", 6.0), ("1/2", 0.5), ("-3/4", -0.75), ("2^3", 8.0), ("sqrt(16)", 4.0), ("2*(3+1)", 8.0)],
    )
    def test_numeric(self, expr, value):
        assert evaluate_to_number(expr) == pytest.approx(value)

    def test_pi(self):
        assert evaluate_to_number("π") == pytest.approx(3.14159, abs=1e-4)

    @pytest.mark.parametrize(
        "expr",
        ["x+1", "1/0", "", "__import__('os')", "2^1000", "2^2^2^2^2^2", "sqrt(-1)", "1+" * 150 + "1"],
    )
    def test_not_numeric(self, expr):
        assert evaluate_to_number(expr) is None


class TestCheckEquivalence:
    """Test check_equivalence function."""

    def test_exact(self):
        result = check_equivalence("2x+1", "2x + 1")
        assert result.is_equivalent is True
        assert result.method == "exact"

    def test_numeric_fraction(self):
        result = check_equivalence("0.5", "1/2")
        assert result.is_equivalent is True
        assert result.method == "numeric"

    def test_within_tolerance(self):
        assert check_equivalence("3.004", "3", tolerance=0.01).is_equivalent is True

    def test_close_but_wrong(self):
        result = check_equivalence("3.2", "3", tolerance=0.01)
        assert result.is_equivalent is False
        assert result.is_close is True

    def test_algebraic_reordering(self):
        result = check_equivalence("1+x", "x+1")
        assert result.is_equivalent is True
        assert result.method == "algebraic"

    @pytest.mark.parametrize(
        "user,expected",
        [("2(x+1)", "2x+2"), ("x·x", "x²"), ("e^(ln(x))", "x"), ("(x+1)^2", "x^2+2x+1")],
    )
    def test_symbolic_forms(self, user, expected):
        result = check_equivalence(user, expected)
        assert result.is_equivalent is True
        assert result.method == "algebraic"

    @pytest.mark.parametrize(
        "user,expected",
        [("e^x", "ln(x)"), ("sin(y)", "cos(x)"), ("x^2", "x^3"), ("2x+1", "2x-1"), ("x", "3")],
    )
    def test_different_expressions(self, user, expected):
        assert check_equivalence(user, expected).is_equivalent is False

    def test_overlong_answer_rejected(self):
        result = check_equivalence("+".join(["x"] * 5000), "5000x")
        assert result.is_equivalent is False
        assert result.method == "none"

    def test_not_equivalent(self):
        result = check_equivalence("7", "3", tolerance=0.01)
        assert result.is_equivalent is False
        assert result.is_close is False


class TestMisconceptions:
    """Test detect_misconceptions function."""

    def test_sign_error(self):
        found = {m.id for m in detect_misconceptions("-6", "6")}
        assert "sign_error" in found

    def test_fraction_flip(self):
        found = {m.id for m in detect_misconceptions("2", "1/2")}
        assert "fraction_flip" in found

    def test_decimal_error(self):
        found = {m.id for m in detect_misconceptions("35", "3.5")}
        assert "decimal_error" in found

    def test_non_numeric_answer(self):
        assert detect_misconceptions("x", "3") == []


class TestEvaluateExercise:
    """Test evaluate_exercise function."""

    def test_mc_correct(self, mc_exercise):
        result = evaluate_exercise(mc_exercise, "A")
        assert result.is_correct is True
        assert result.correct_answer == "A"
        assert result.feedback.startswith("Correct!")

    def test_mc_wrong(self, mc_exercise):
        result = evaluate_exercise(mc_exercise, "C")
        assert result.is_correct is False
        assert '"x^2"' in result.feedback

    def test_steps_correct(self, step_exercise):
        result = evaluate_exercise(step_exercise, ["6", "3.0"])
        assert result.is_correct is True
        assert result.correct_answer == ["6", "3"]
        assert [s.correct for s in result.step_results] == [True, True]

    def test_steps_as_mapping(self, step_exercise):
        assert evaluate_exercise(step_exercise, {1: "6", "2": "6/2"}).is_correct is True

    def test_steps_wrong_with_misconception(self, step_exercise):
        result = evaluate_exercise(step_exercise, ["-6", "3"])

        assert result.is_correct is False
        assert result.step_results[0].correct is False
        assert "sign_error" in {m.id for m in result.misconceptions}
        assert "step(s): 1" in result.feedback

    def test_missing_steps_count_as_wrong(self, step_exercise):
        result = evaluate_exercise(step_exercise, ["6"])
        assert result.is_correct is False

    def test_long_answer_is_wrong_not_an_error(self, step_exercise):
        result = evaluate_exercise(step_exercise, ["+".join(["1"] * 5000), "3"])

        assert result.is_correct is False
        assert [s.correct for s in result.step_results] == [False, True]
        assert result.misconceptions == []

    def test_nonlinear_wrong_step(self, step_exercise):
        result = evaluate_exercise(step_exercise, ["e^x", "ln(x)"])
        assert result.is_correct is False

    def test_bad_answer_shape(self, step_exercise):
        with pytest.raises(EvaluationFailure):
            evaluate_exercise(step_exercise, 42)


class TestEvaluateAnswer:
    """Test the stateless evaluate_answer contract."""

    def test_worked_example(self, mc_payload):
        mc_payload["difficulty"] = 3
        response = evaluate_answer(
            {
                "questionData": mc_payload,
                "userAnswer": "A",
                "hintsUsed": 1,
                "timeSpent": 60,
                "correctStreak": 5,
            }
        )

        assert response.success is True
        assert response.is_correct is True
        assert response.xp_earned == 32
        assert response.xp_breakdown == {
            "base": 20,
            "hintPenalty": -3,
            "timeBonus": 4,
            "streakBonus": 11,
            "total": 32,
        }

    def test_wrong_answer(self, mc_payload):
        response = evaluate_answer({"questionData": mc_payload, "userAnswer": "B"})

        assert response.success is True
        assert response.is_correct is False
        assert response.xp_earned == 0
        assert response.correct_answer == "A"

    def test_skipped(self, step_payload):
        response = evaluate_answer({"questionData": step_payload, "skipped": True})

        assert response.is_correct is False
        assert response.xp_earned == 0
        assert response.xp_breakdown["hintPenalty"] == -response.xp_breakdown["base"]
        assert response.correct_answer == ["6", "3"]

    def test_idempotent(self, step_payload):
        request = {"questionData": step_payload, "userAnswer": ["-6", "3"], "timeSpent": 30}
        assert evaluate_answer(request).to_payload() == evaluate_answer(request).to_payload()

    def test_long_answer_still_scored(self, step_payload):
        response = evaluate_answer({"questionData": step_payload, "userAnswer": ["+".join(["1"] * 5000), "3"]})

        assert response.success is True
        assert response.is_correct is False
        assert response.xp_earned == 0

    def test_misconceptions_reported(self, step_payload):
        response = evaluate_answer({"questionData": step_payload, "userAnswer": ["-6", "3"]})
        assert {"id", "name", "hint"} <= set(response.misconceptions[0])

    @pytest.mark.parametrize(
        "request_data",
        [
            {"questionData": {"id": "broken"}},
            {"questionData": {"id": "x", "type": "multiple-choice", "question": "?", "options": []}},
            {"userAnswer": "A"},
        ],
    )
    def test_malformed_data(self, request_data):
        response = evaluate_answer(request_data)

        assert response.success is False
        assert response.error == "Evaluation failed"
        assert response.to_payload()["success"] is False

    def test_payload_uses_wire_names(self, mc_payload):
        payload = evaluate_answer({"questionData": mc_payload, "userAnswer": "A"}).to_payload()
        assert {"isCorrect", "xpEarned", "xpBreakdown", "correctAnswer"} <= set(payload)
        assert "error" not in payload

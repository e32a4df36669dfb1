"""
Answer Evaluation.

Checks a learner's answer against an exercise and implements the stateless
scoring-service contract used by formal sessions:

    request  {questionData, userAnswer, hintsUsed, timeSpent, skipped, correctStreak}
    response {success, isCorrect, feedback, correctAnswer, xpEarned, xpBreakdown}

Step answers are compared semantically:
1. Exact match after normalising math symbols
2. Numeric evaluation (fractions, arithmetic, roots, pi, e) within tolerance
3. Symbolic equivalence via sympy (x+1 == 1+x, 2(x+1) == 2x+2)

Wrong steps are checked against common misconceptions so the feedback can
point at the likely mistake.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from tokenize import TokenError
from typing import Any, Callable

import sympy as sp
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from sympy.parsing.sympy_parser import (
    convert_xor,
    implicit_multiplication_application,
    parse_expr,
    standard_transformations,
)

from .errors import EvaluationFailure
from .models import Exercise, ExerciseType
from .scoring import score_formal

# =============================================================================
# Expression Normalisation
# =============================================================================

SYMBOL_REPLACEMENTS = [
    ("×", "*"),
    ("÷", "/"),
    ("−", "-"),
    ("·", "*"),
    ("²", "^2"),
    ("³", "^3"),
    ("√", "sqrt"),
    ("π", "pi"),
]

MAX_EXPRESSION_LENGTH = 200
MAX_EXPONENT = 64

_ALLOWED_CHARS_RE = re.compile(r"^[0-9a-z.+\-*/^()]+$")

_TRANSFORMATIONS = standard_transformations + (implicit_multiplication_application, convert_xor)

# Only these names resolve to sympy objects; anything else becomes a symbol
_NAMESPACE: dict[str, Any] = {
    "__builtins__": {},
    "Symbol": sp.Symbol,
    "Integer": sp.Integer,
    "Float": sp.Float,
    "Rational": sp.Rational,
    "Function": sp.Function,
    "Add": sp.Add,
    "Mul": sp.Mul,
    "Pow": sp.Pow,
    "sqrt": sp.sqrt,
    "exp": sp.exp,
    "log": sp.log,
    "ln": sp.log,
    "sin": sp.sin,
    "cos": sp.cos,
    "tan": sp.tan,
    "abs": sp.Abs,
    "pi": sp.pi,
    "e": sp.E,
}

_PARSE_ERRORS = (
    sp.SympifyError,
    SyntaxError,
    TokenError,
    TypeError,
    ValueError,
    AttributeError,
    ZeroDivisionError,
    OverflowError,
    RecursionError,
    MemoryError,
)


def normalize_expression(expr: Any) -> str:
    """Canonical textual form of a math answer."""
    if expr is None:
        return ""
    normalized = re.sub(r"\s+", "", str(expr).strip().lower())
    for symbol, replacement in SYMBOL_REPLACEMENTS:
        normalized = normalized.replace(symbol, replacement)
    normalized = normalized.replace(",", ".")
    normalized = re.sub(r"^\+", "", normalized)
    # Implicit multiplication: 2x -> 2*x
    return re.sub(r"(\d)([a-z])", r"\1*\2", normalized)


def _check_exponents(expr: sp.Expr) -> None:
    # Children first, so a power tower is rejected before its top is evaluated
    for node in sp.postorder_traversal(expr):
        if isinstance(node, sp.Pow) and node.exp.is_number and abs(sp.N(node.exp)) > MAX_EXPONENT:
            raise ValueError("exponent too large")


def parse_math(expr: Any) -> sp.Expr | None:
    """
    Parse a learner answer into an unevaluated sympy expression.

    Returns None for empty, overlong or unparseable input and for powers
    whose exponent exceeds MAX_EXPONENT.
    """
    normalized = normalize_expression(expr)
    if not normalized or len(normalized) > MAX_EXPRESSION_LENGTH:
        return None
    if not _ALLOWED_CHARS_RE.match(normalized):
        return None

    try:
        parsed = parse_expr(
            normalized,
            local_dict={},
            global_dict=dict(_NAMESPACE),
            transformations=_TRANSFORMATIONS,
            evaluate=False,
        )
        if not isinstance(parsed, sp.Expr):
            return None
        _check_exponents(parsed)
    except _PARSE_ERRORS as e:
        logger.debug("Could not parse answer {!r}: {}", normalized[:40], e)
        return None
    return parsed


def evaluate_to_number(expr: Any) -> float | None:
    """Evaluate a numeric expression, or None if it is not purely numeric."""
    parsed = parse_math(expr)
    if parsed is None or parsed.free_symbols:
        return None
    try:
        value = sp.N(parsed)
    except _PARSE_ERRORS:
        return None
    if value.is_real is not True or value.is_finite is not True:
        return None
    return float(value)


def check_symbolic_equivalence(first: sp.Expr, second: sp.Expr) -> bool:
    """Whether two expressions simplify to the same thing."""
    try:
        return sp.simplify(first - second) == 0
    except _PARSE_ERRORS:
        return False


@dataclass
class EquivalenceResult:
    """How (and whether) two answers matched."""

    is_equivalent: bool
    method: str  # "exact", "numeric", "algebraic", "none"
    is_close: bool = False
    user_value: float | None = None
    expected_value: float | None = None


def check_equivalence(user_answer: Any, expected_answer: Any, tolerance: float = 0.0001) -> EquivalenceResult:
    """Compare a learner answer with the expected one."""
    user_norm = normalize_expression(user_answer)
    expected_norm = normalize_expression(expected_answer)

    if user_norm and user_norm == expected_norm:
        return EquivalenceResult(True, "exact")

    user_num = evaluate_to_number(user_answer)
    expected_num = evaluate_to_number(expected_answer)
    if user_num is not None and expected_num is not None:
        diff = abs(user_num - expected_num)
        if diff <= tolerance:
            return EquivalenceResult(True, "numeric", user_value=user_num, expected_value=expected_num)
        if diff <= tolerance * 100:
            return EquivalenceResult(
                False, "numeric", is_close=True, user_value=user_num, expected_value=expected_num
            )

    if re.search(r"[a-z]", user_norm) and re.search(r"[a-z]", expected_norm):
        user_expr = parse_math(user_answer)
        expected_expr = parse_math(expected_answer)
        if (
            user_expr is not None
            and expected_expr is not None
            and check_symbolic_equivalence(user_expr, expected_expr)
        ):
            return EquivalenceResult(True, "algebraic")

    return EquivalenceResult(False, "none")


# =============================================================================
# Misconception Detection
# =============================================================================


def _ratio_in(factors: list[float], eps: float) -> Callable[[float, float], bool]:
    def check(user: float, expected: float) -> bool:
        if expected == 0:
            return False
        ratio = user / expected
        return any(abs(ratio - factor) < eps for factor in factors)
    return check


def _sign_error(user: float, expected: float) -> bool:
    return expected != 0 and abs(user + expected) < 0.0001


def _fraction_flip(user: float, expected: float) -> bool:
    return user != 0 and abs(user * expected - 1) < 0.0001 and abs(user - expected) > 0.0001


def _power_error(user: float, expected: float) -> bool:
    if expected <= 0:
        return False
    return abs(user - math.sqrt(expected)) < 0.001 or abs(user - expected * expected) < 0.001


@dataclass(frozen=True)
class Misconception:
    """A common mistake pattern recognisable from two numeric values."""

    id: str
    name: str
    hint: str
    check: Callable[[float, float], bool] = field(compare=False, repr=False)


MISCONCEPTIONS = [
    Misconception(
        "sign_error", "Sign error",
        "Check the signs in your calculation.",
        _sign_error,
    ),
    Misconception(
        "factor_error", "Missing factor",
        "Check whether you accounted for every factor.",
        _ratio_in([2, 0.5, 10, 0.1, math.pi, 1 / math.pi], 0.001),
    ),
    Misconception(
        "fraction_flip", "Fraction inverted",
        "Check that numerator and denominator are in the right place.",
        _fraction_flip,
    ),
    Misconception(
        "power_error", "Power error",
        "Check your powers and roots.",
        _power_error,
    ),
    Misconception(
        "decimal_error", "Decimal point error",
        "Check the position of the decimal point.",
        _ratio_in([10, 100, 1000, 0.1, 0.01, 0.001], 0.0001),
    ),
    Misconception(
        "unit_conversion", "Unit conversion error",
        "Check that every unit was converted correctly.",
        _ratio_in([60, 1 / 60, 3600, 1 / 3600, 1000, 0.001, 100, 0.01], 0.0001),
    ),
]


def detect_misconceptions(user_answer: Any, expected_answer: Any) -> list[Misconception]:
    """Misconceptions consistent with a wrong numeric answer."""
    user_num = evaluate_to_number(user_answer)
    expected_num = evaluate_to_number(expected_answer)
    if user_num is None or expected_num is None:
        return []
    return [m for m in MISCONCEPTIONS if m.check(user_num, expected_num)]


# =============================================================================
# Exercise Evaluation
# =============================================================================


@dataclass
class StepResult:
    step_number: int
    correct: bool
    expected: str
    actual: str
    method: str
    is_close: bool = False
    misconceptions: list[Misconception] = field(default_factory=list)


@dataclass
class EvaluationResult:
    """Correctness verdict for one answer."""

    is_correct: bool
    correct_answer: Any
    feedback: str
    step_results: list[StepResult] = field(default_factory=list)
    misconceptions: list[Misconception] = field(default_factory=list)


def _step_answers(exercise: Exercise, user_answer: Any) -> list[str]:
    if isinstance(user_answer, dict):
        return [str(user_answer.get(step.step_number, user_answer.get(str(step.step_number), "")))
                for step in exercise.steps]
    if isinstance(user_answer, (list, tuple)):
        answers = ["" if a is None else str(a) for a in user_answer]
        return answers + [""] * (len(exercise.steps) - len(answers))
    raise EvaluationFailure(
        f"step-by-step answer must be a list or mapping, got {type(user_answer).__name__}"
    )


def evaluate_exercise(exercise: Exercise, user_answer: Any) -> EvaluationResult:
    """
    Decide whether an answer to an exercise is correct.

    Raises:
        EvaluationFailure: If the exercise content or answer shape is unusable
    """
    explanation = exercise.explanation

    if exercise.type is ExerciseType.MULTIPLE_CHOICE:
        correct_option = exercise.correct_option
        if correct_option is None:
            raise EvaluationFailure(f"exercise {exercise.id} has no correct option")
        if user_answer == correct_option.id:
            return EvaluationResult(True, correct_option.id, f"Correct! {explanation}".strip())
        chosen = next((opt for opt in exercise.options if opt.id == user_answer), None)
        chosen_text = chosen.text if chosen else "no answer"
        return EvaluationResult(
            False,
            correct_option.id,
            f'Not quite. You chose "{chosen_text}". {explanation}'.strip(),
        )

    if not exercise.steps:
        raise EvaluationFailure(f"exercise {exercise.id} has no steps")

    results = []
    for step, answer in zip(exercise.steps, _step_answers(exercise, user_answer)):
        outcome = check_equivalence(answer, step.expected_answer, step.tolerance)
        found = [] if outcome.is_equivalent else detect_misconceptions(answer, step.expected_answer)
        results.append(
            StepResult(
                step_number=step.step_number,
                correct=outcome.is_equivalent,
                expected=step.expected_answer,
                actual=answer,
                method=outcome.method,
                is_close=outcome.is_close,
                misconceptions=found,
            )
        )

    correct_answer = [step.expected_answer for step in exercise.steps]
    if all(r.correct for r in results):
        return EvaluationResult(True, correct_answer, f"All steps correct! {explanation}".strip(), results)

    wrong = [r for r in results if not r.correct]
    unique: dict[str, Misconception] = {}
    for result in wrong:
        for misconception in result.misconceptions:
            unique.setdefault(misconception.id, misconception)

    lines = [f"Not every step was correct. Mistakes in step(s): {', '.join(str(r.step_number) for r in wrong)}."]
    if unique:
        lines.append("Possible causes:")
        lines.extend(f"- {m.name}: {m.hint}" for m in unique.values())
    close = [r for r in wrong if r.is_close]
    if close:
        lines.append(f"You were close in step {', '.join(str(r.step_number) for r in close)}!")
    if explanation:
        lines.append(explanation)
    return EvaluationResult(False, correct_answer, "\n".join(lines), results, list(unique.values()))


# =============================================================================
# Scoring Service Contract
# =============================================================================


class EvaluationRequest(BaseModel):
    """Wire request of the scoring service."""

    model_config = ConfigDict(populate_by_name=True)

    question_data: dict[str, Any] = Field(alias="questionData")
    user_answer: Any = Field(default=None, alias="userAnswer")
    hints_used: int = Field(default=0, alias="hintsUsed")
    time_spent: float = Field(default=0, alias="timeSpent")
    skipped: bool = False
    correct_streak: int = Field(default=0, alias="correctStreak")


class EvaluationResponse(BaseModel):
    """Wire response of the scoring service."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    is_correct: bool = Field(default=False, alias="isCorrect")
    feedback: str = ""
    correct_answer: Any = Field(default=None, alias="correctAnswer")
    xp_earned: int = Field(default=0, alias="xpEarned")
    xp_breakdown: dict[str, int] = Field(default_factory=dict, alias="xpBreakdown")
    misconceptions: list[dict[str, str]] = Field(default_factory=list)
    error: str | None = None

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


def evaluate_answer(request: EvaluationRequest | dict[str, Any]) -> EvaluationResponse:
    """
    Evaluate and score one answer.

    Stateless: identical requests always produce identical responses.
    Malformed exercise data yields ``success=False`` instead of raising.
    """
    try:
        if not isinstance(request, EvaluationRequest):
            request = EvaluationRequest.model_validate(request)
        exercise = Exercise.model_validate(request.question_data)
        if request.skipped:
            verdict = EvaluationResult(False, _correct_answer_of(exercise), "Question skipped")
        else:
            verdict = evaluate_exercise(exercise, request.user_answer)
    except (ValidationError, EvaluationFailure) as exc:
        logger.warning("Answer evaluation failed: {}", exc)
        return EvaluationResponse(success=False, error="Evaluation failed")

    outcome = score_formal(
        difficulty=exercise.difficulty,
        hints_used=request.hints_used,
        time_spent_seconds=request.time_spent,
        was_skipped=request.skipped,
        was_correct=verdict.is_correct,
        correct_streak=request.correct_streak,
    )
    return EvaluationResponse(
        success=True,
        is_correct=verdict.is_correct,
        feedback=verdict.feedback,
        correct_answer=verdict.correct_answer,
        xp_earned=outcome.xp_awarded,
        xp_breakdown=outcome.breakdown.to_dict(),
        misconceptions=[
            {"id": m.id, "name": m.name, "hint": m.hint} for m in verdict.misconceptions
        ],
    )


def _correct_answer_of(exercise: Exercise) -> Any:
    if exercise.type is ExerciseType.MULTIPLE_CHOICE:
        option = exercise.correct_option
        return option.id if option else None
    return [step.expected_answer for step in exercise.steps]

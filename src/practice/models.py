"""
Data models for the adaptive practice engine.

Exercises arrive from the generator service as JSON with camelCase keys,
so the pydantic models accept both the wire aliases and field names.
Per-session state (buffer, outcomes) uses plain dataclasses.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# =============================================================================
# Constants
# =============================================================================

MIN_DIFFICULTY = 1
MAX_DIFFICULTY = 10
MAX_HINTS = 3
MC_OPTION_COUNT = 4
DEFAULT_STEP_TOLERANCE = 0.01

DIFFICULTY_LABELS = {
    1: "very easy",
    2: "easy",
    3: "easy-medium",
    4: "medium",
    5: "medium",
    6: "medium-hard",
    7: "hard",
    8: "hard",
    9: "very hard",
    10: "expert",
}


def clamp_difficulty(level: int) -> int:
    """Clamp a difficulty level into the supported range."""
    return max(MIN_DIFFICULTY, min(MAX_DIFFICULTY, int(level)))


# =============================================================================
# Topics
# =============================================================================


class TopicRef(BaseModel):
    """One selected topic: guiding idea > topic > subtopic."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    leitidee: str = ""
    thema: str = ""
    unterthema: str = ""

    def as_tuple(self) -> tuple[str, str, str]:
        return (self.leitidee, self.thema, self.unterthema)

    def label(self) -> str:
        parts = [p for p in self.as_tuple() if p]
        return " > ".join(parts) if parts else "Mathematik"


def topic_set_hash(topics: Iterable[TopicRef]) -> str:
    """
    Stable identity for a topic selection.

    Order and duplicates do not change the hash.
    """
    triples = sorted({t.as_tuple() for t in topics})
    encoded = json.dumps(triples, ensure_ascii=False, separators=(",", ":"))
    return hashlib.sha256(encoded.encode("utf-8")).hexdigest()


# =============================================================================
# Exercise
# =============================================================================


class ExerciseType(str, Enum):
    """Supported exercise formats."""

    MULTIPLE_CHOICE = "multiple-choice"
    STEP_BY_STEP = "step-by-step"


class ExerciseOption(BaseModel):
    """A multiple-choice answer option."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    text: str
    is_correct: bool = Field(default=False, alias="isCorrect")


class ExerciseStep(BaseModel):
    """A sub-step with an expected value and numeric tolerance."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    step_number: int = Field(alias="stepNumber")
    instruction: str = ""
    expected_answer: str = Field(alias="expectedAnswer")
    tolerance: float = DEFAULT_STEP_TOLERANCE

    @field_validator("expected_answer", mode="before")
    @classmethod
    def _stringify_expected(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("tolerance", mode="before")
    @classmethod
    def _default_tolerance(cls, value: Any) -> float:
        return DEFAULT_STEP_TOLERANCE if value in (None, 0, "") else value


class Hint(BaseModel):
    """A graded hint (level 1 = gentle, level 3 = nearly the solution)."""

    model_config = ConfigDict(frozen=True)

    level: int
    text: str


class Exercise(BaseModel):
    """An immutable practice exercise as produced by a generator."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    type: ExerciseType
    difficulty: int = 5
    topic: str = "Mathematik"
    subtopic: str = "Allgemein"
    question: str
    options: tuple[ExerciseOption, ...] = ()
    steps: tuple[ExerciseStep, ...] = ()
    hints: tuple[Hint, ...] = ()
    explanation: str = ""
    solution: str = ""
    source: str = "generator"
    offline: bool = False

    @field_validator("difficulty", mode="before")
    @classmethod
    def _clamp_difficulty(cls, value: Any) -> int:
        if value is None:
            return 5
        return clamp_difficulty(value)

    @field_validator("hints", mode="before")
    @classmethod
    def _normalize_hints(cls, value: Any) -> list[dict[str, Any]]:
        if not value:
            return []
        hints = []
        for index, item in enumerate(value, start=1):
            if isinstance(item, str):
                hints.append({"level": index, "text": item})
            else:
                hints.append(item)
        return hints[:MAX_HINTS]

    @model_validator(mode="after")
    def _check_content(self) -> "Exercise":
        if self.type is ExerciseType.MULTIPLE_CHOICE:
            if len(self.options) != MC_OPTION_COUNT:
                raise ValueError(
                    f"multiple-choice exercises need {MC_OPTION_COUNT} options, got {len(self.options)}"
                )
            correct = sum(1 for opt in self.options if opt.is_correct)
            if correct != 1:
                raise ValueError(f"exactly one option must be correct, got {correct}")
        elif not self.steps:
            raise ValueError("step-by-step exercises need at least one step")
        return self

    @property
    def correct_option(self) -> ExerciseOption | None:
        return next((opt for opt in self.options if opt.is_correct), None)

    def to_payload(self) -> dict[str, Any]:
        """Serialize using the generator's wire names."""
        return self.model_dump(mode="json", by_alias=True)


# =============================================================================
# Buffer State
# =============================================================================


class FetchState(str, Enum):
    """Which generator fetch, if any, is in flight for the buffer."""

    IDLE = "idle"
    FETCHING_FOREGROUND = "fetching_foreground"
    FETCHING_BACKGROUND = "fetching_background"


@dataclass
class BufferState:
    """
    Per-session exercise buffer and adaptation counters.

    Only BufferManager and DifficultyController write to this.
    """

    topic_hash: str
    difficulty: int = 5
    exercises: list[Exercise] = field(default_factory=list)
    cursor: int = 0
    pending: list[Exercise] = field(default_factory=list)
    consecutive_correct: int = 0
    consecutive_wrong: int = 0
    fetch_state: FetchState = FetchState.IDLE


@dataclass(frozen=True)
class FetchTicket:
    """Tag carried by one generator fetch: which buffer it was issued for."""

    topic_hash: str
    epoch: int
    kind: FetchState
    difficulty: int
    serial: int = 0


@dataclass(frozen=True)
class BufferSnapshot:
    """Read-only view of a BufferState."""

    topic_hash: str
    difficulty: int
    cursor: int
    main_length: int
    pending_length: int
    remaining: int
    consecutive_correct: int
    consecutive_wrong: int
    fetch_state: FetchState


# =============================================================================
# Answer Outcome
# =============================================================================


@dataclass(frozen=True)
class XPBreakdown:
    """Display breakdown of an XP award (each figure rounded independently)."""

    base: int = 0
    hint_penalty: int = 0
    time_bonus: int = 0
    streak_bonus: int = 0
    total: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "base": self.base,
            "hintPenalty": self.hint_penalty,
            "timeBonus": self.time_bonus,
            "streakBonus": self.streak_bonus,
            "total": self.total,
        }


@dataclass(frozen=True)
class AnswerOutcome:
    """Result of scoring one answered exercise."""

    is_correct: bool
    xp_awarded: int
    breakdown: XPBreakdown
    mode: str
    skipped: bool = False

"""
Adaptive practice engine for secondary-school math.

Components:
- BufferManager: Main/pending exercise queues and fetch state
- DifficultyController: Streak-driven difficulty adaptation
- PrefetchScheduler: Non-blocking background refills
- Scoring: Formal and live XP formulas, learner levels
- Evaluator: Answer checking with equivalence and misconception detection
- PracticeEngine: Orchestrates all of the above for one learner
"""

from .buffer import BufferManager
from .difficulty import DifficultyConfig, DifficultyController, DifficultyTransition
from .engine import AnswerReport, EngineConfig, PracticeEngine, SessionStats
from .errors import (
    EvaluationFailure,
    GenerationFailure,
    PracticeEngineError,
    RemediationGenerationFailure,
    ResponseParseFailure,
)
from .evaluator import (
    EvaluationRequest,
    EvaluationResponse,
    EvaluationResult,
    check_equivalence,
    detect_misconceptions,
    evaluate_answer,
    evaluate_exercise,
)
from .models import (
    AnswerOutcome,
    BufferSnapshot,
    Exercise,
    ExerciseType,
    FetchState,
    FetchTicket,
    TopicRef,
    XPBreakdown,
    topic_set_hash,
)
from .prefetch import ExerciseSource, PrefetchScheduler
from .scoring import ScoringMode, level_for_xp, score_answer, score_formal, score_live
from .telemetry import PracticeTelemetry, TaskRecord, TaskStatistics

__all__ = [
    # Engine
    "PracticeEngine",
    "EngineConfig",
    "SessionStats",
    "AnswerReport",
    # Buffer & adaptation
    "BufferManager",
    "BufferSnapshot",
    "FetchState",
    "FetchTicket",
    "DifficultyController",
    "DifficultyConfig",
    "DifficultyTransition",
    "PrefetchScheduler",
    "ExerciseSource",
    # Models
    "Exercise",
    "ExerciseType",
    "TopicRef",
    "topic_set_hash",
    "AnswerOutcome",
    "XPBreakdown",
    # Scoring
    "ScoringMode",
    "score_answer",
    "score_formal",
    "score_live",
    "level_for_xp",
    # Evaluation
    "evaluate_exercise",
    "evaluate_answer",
    "EvaluationRequest",
    "EvaluationResponse",
    "EvaluationResult",
    "check_equivalence",
    "detect_misconceptions",
    # Telemetry
    "PracticeTelemetry",
    "TaskRecord",
    "TaskStatistics",
    # Errors
    "PracticeEngineError",
    "GenerationFailure",
    "ResponseParseFailure",
    "RemediationGenerationFailure",
    "EvaluationFailure",
]

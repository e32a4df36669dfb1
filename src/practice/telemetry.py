"""
Practice Telemetry.

Keeps a bounded in-memory log of answered tasks for diagnostics and
difficulty tuning:
- Accuracy, average time and hint usage
- XP earned
- Distribution of answered difficulty levels
- Recent performance trend
"""

from __future__ import annotations

from collections import Counter, deque
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any

MAX_LOG_ENTRIES = 1000


@dataclass
class TaskRecord:
    """One answered (or skipped) exercise."""

    exercise_id: str
    topic: str
    difficulty: int
    correct: bool
    time_spent: float
    hints_used: int
    xp_earned: int
    skipped: bool = False
    offline: bool = False
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["timestamp"] = self.timestamp.isoformat()
        return data


@dataclass
class TaskStatistics:
    total_tasks: int = 0
    correct_tasks: int = 0
    accuracy: float = 0.0
    avg_time_spent: float = 0.0
    avg_hints_used: float = 0.0
    total_xp: int = 0
    difficulty_counts: dict[int, int] = field(default_factory=dict)


class PracticeTelemetry:
    """Bounded task log with summary statistics."""

    def __init__(self, max_entries: int = MAX_LOG_ENTRIES):
        self._log: deque[TaskRecord] = deque(maxlen=max_entries)

    def __len__(self) -> int:
        return len(self._log)

    def record(self, record: TaskRecord) -> TaskRecord:
        """Append a task, dropping the oldest once the log is full."""
        self._log.append(record)
        return record

    def entries(self) -> list[TaskRecord]:
        return list(self._log)

    def clear(self) -> None:
        self._log.clear()

    def statistics(self) -> TaskStatistics:
        """Aggregate the whole log."""
        log = self._log
        if not log:
            return TaskStatistics()

        total = len(log)
        correct = sum(1 for t in log if t.correct)
        return TaskStatistics(
            total_tasks=total,
            correct_tasks=correct,
            accuracy=correct / total * 100,
            avg_time_spent=sum(t.time_spent for t in log) / total,
            avg_hints_used=sum(t.hints_used for t in log) / total,
            total_xp=sum(t.xp_earned for t in log),
            difficulty_counts=dict(Counter(t.difficulty for t in log)),
        )

    def performance_trend(self, num_tasks: int = 10) -> list[dict[str, Any]]:
        """Correctness and difficulty of the last ``num_tasks`` tasks."""
        recent = list(self._log)[-num_tasks:] if num_tasks > 0 else []
        return [
            {
                "timestamp": t.timestamp.isoformat(),
                "correct": t.correct,
                "difficulty": t.difficulty,
            }
            for t in recent
        ]

"""
Unit tests for practice telemetry.
"""

from src.practice.telemetry import PracticeTelemetry, TaskRecord


def record(index, correct=True, difficulty=5, xp=20):
    return TaskRecord(
        exercise_id=f"ex-{index}",
        topic="Analysis|Kurvendiskussion",
        difficulty=difficulty,
        correct=correct,
        time_spent=30.0,
        hints_used=1 if not correct else 0,
        xp_earned=xp if correct else 0,
    )


class TestPracticeTelemetry:
    """Test PracticeTelemetry class."""

    def test_empty_statistics(self):
        stats = PracticeTelemetry().statistics()
        assert stats.total_tasks == 0
        assert stats.accuracy == 0.0

    def test_statistics(self):
        telemetry = PracticeTelemetry()
        telemetry.record(record(1, difficulty=5))
        telemetry.record(record(2, correct=False, difficulty=5))
        telemetry.record(record(3, difficulty=6))
        telemetry.record(record(4, difficulty=6))

        stats = telemetry.statistics()

        assert stats.total_tasks == 4
        assert stats.correct_tasks == 3
        assert stats.accuracy == 75.0
        assert stats.avg_time_spent == 30.0
        assert stats.avg_hints_used == 0.25
        assert stats.total_xp == 60
        assert stats.difficulty_counts == {5: 2, 6: 2}

    def test_log_is_bounded(self):
        telemetry = PracticeTelemetry(max_entries=3)
        for i in range(5):
            telemetry.record(record(i))

        assert len(telemetry) == 3
        assert [r.exercise_id for r in telemetry.entries()] == ["ex-2", "ex-3", "ex-4"]

    def test_performance_trend(self):
        telemetry = PracticeTelemetry()
        for i in range(12):
            telemetry.record(record(i, correct=i % 2 == 0))

        trend = telemetry.performance_trend(4)

        assert len(trend) == 4
        assert [t["correct"] for t in trend] == [True, False, True, False]
        assert telemetry.performance_trend(0) == []

    def test_clear(self):
        telemetry = PracticeTelemetry()
        telemetry.record(record(1))
        telemetry.clear()
        assert len(telemetry) == 0

    def test_to_dict(self):
        data = record(1).to_dict()
        assert data["exercise_id"] == "ex-1"
        assert isinstance(data["timestamp"], str)

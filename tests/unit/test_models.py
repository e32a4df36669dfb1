"""
Unit tests for exercise and topic models.
"""

import pytest
from pydantic import ValidationError

from src.practice.models import Exercise, ExerciseType, TopicRef, topic_set_hash


class TestExerciseValidation:
    """Test Exercise content rules."""

    def test_wire_format(self, mc_exercise):
        assert mc_exercise.type is ExerciseType.MULTIPLE_CHOICE
        assert mc_exercise.correct_option.text == "2x"
        assert [h.level for h in mc_exercise.hints] == [1, 2, 3]
        assert mc_exercise.offline is False

    def test_step_values_stringified(self, step_exercise):
        assert step_exercise.steps[1].expected_answer == "3"
        assert step_exercise.steps[0].tolerance == pytest.approx(0.01)

    def test_mc_needs_four_options(self, mc_payload):
        mc_payload["options"] = mc_payload["options"][:3]
        with pytest.raises(ValidationError):
            Exercise.model_validate(mc_payload)

    def test_mc_needs_exactly_one_correct(self, mc_payload):
        mc_payload["options"][1]["isCorrect"] = True
        with pytest.raises(ValidationError):
            Exercise.model_validate(mc_payload)

    def test_steps_required(self, step_payload):
        step_payload["steps"] = []
        with pytest.raises(ValidationError):
            Exercise.model_validate(step_payload)

    def test_unknown_type(self, mc_payload):
        mc_payload["type"] = "essay"
        with pytest.raises(ValidationError):
            Exercise.model_validate(mc_payload)

    @pytest.mark.parametrize("raw,expected", [(0, 1), (-4, 1), (11, 10), (None, 5), (7, 7)])
    def test_difficulty_clamped(self, mc_payload, raw, expected):
        mc_payload["difficulty"] = raw
        assert Exercise.model_validate(mc_payload).difficulty == expected

    def test_hints_truncated(self, mc_payload):
        mc_payload["hints"] = ["one", "two", "three", "four"]
        assert len(Exercise.model_validate(mc_payload).hints) == 3

    def test_immutable(self, mc_exercise):
        with pytest.raises(ValidationError):
            mc_exercise.difficulty = 9

    def test_payload_round_trip(self, mc_exercise):
        payload = mc_exercise.to_payload()
        assert payload["options"][0]["isCorrect"] is True
        assert Exercise.model_validate(payload) == mc_exercise


class TestTopicSetHash:
    """Test topic_set_hash function."""

    def test_order_independent(self, sample_topics):
        assert topic_set_hash(sample_topics) == topic_set_hash(list(reversed(sample_topics)))

    def test_duplicates_ignored(self, sample_topics):
        assert topic_set_hash(sample_topics) == topic_set_hash(sample_topics + sample_topics[:1])

    def test_different_sets_differ(self, sample_topics):
        assert topic_set_hash(sample_topics) != topic_set_hash(sample_topics[:1])

    def test_label(self):
        assert TopicRef(thema="Analysis", unterthema="Kurvendiskussion").label() == "Analysis > Kurvendiskussion"
        assert TopicRef().label() == "Mathematik"

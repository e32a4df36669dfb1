"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import pytest
import sys
from pathlib import Path

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from src.practice.models import Exercise, TopicRef  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def sample_topics():
    """Provide two selected topics."""
    return [
        TopicRef(leitidee="Funktionaler Zusammenhang", thema="Analysis", unterthema="Kurvendiskussion"),
        TopicRef(leitidee="Daten und Zufall", thema="Stochastik", unterthema="Binomialverteilung"),
    ]


@pytest.fixture
def mc_payload():
    """Provide a multiple-choice exercise in wire format."""
    return {
        "id": "mc-001",
        "type": "multiple-choice",
        "difficulty": 4,
        "topic": "Analysis",
        "subtopic": "Ableitungsregeln",
        "question": "What is the derivative of f(x) = x^2?",
        "options": [
            {"id": "A", "text": "2x", "isCorrect": True},
            {"id": "B", "text": "x", "isCorrect": False},
            {"id": "C", "text": "x^2", "isCorrect": False},
            {"id": "D", "text": "2", "isCorrect": False},
        ],
        "hints": ["Use the power rule.", "Bring the exponent down.", "n * x^(n-1)"],
        "explanation": "Power rule: d/dx x^n = n x^(n-1).",
    }


@pytest.fixture
def step_payload():
    """Provide a step-by-step exercise in wire format."""
    return {
        "id": "steps-001",
        "type": "step-by-step",
        "difficulty": 3,
        "topic": "Algebra",
        "subtopic": "Lineare Gleichungssysteme",
        "question": "Solve 2x + 4 = 10.",
        "steps": [
            {"stepNumber": 1, "instruction": "Subtract 4 from both sides", "expectedAnswer": "6"},
            {"stepNumber": 2, "instruction": "Divide by 2", "expectedAnswer": 3, "tolerance": 0.01},
        ],
        "explanation": "x = 3.",
    }


@pytest.fixture
def mc_exercise(mc_payload):
    """Provide a validated multiple-choice exercise."""
    return Exercise.model_validate(mc_payload)


@pytest.fixture
def step_exercise(step_payload):
    """Provide a validated step-by-step exercise."""
    return Exercise.model_validate(step_payload)


def make_exercise(exercise_id: str, difficulty: int = 5) -> Exercise:
    """Build a minimal multiple-choice exercise whose correct option is 'A'."""
    return Exercise(
        id=exercise_id,
        type="multiple-choice",
        difficulty=difficulty,
        question=f"Question {exercise_id}",
        options=[
            {"id": "A", "text": "right", "isCorrect": True},
            {"id": "B", "text": "wrong"},
            {"id": "C", "text": "wrong"},
            {"id": "D", "text": "wrong"},
        ],
    )


@pytest.fixture
def exercise_factory():
    """Provide the minimal exercise builder."""
    return make_exercise

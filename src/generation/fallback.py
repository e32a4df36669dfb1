"""
Local Fallback Generator.

Synthesizes simple multiple-choice exercises from the selected topics when
the generator service cannot be used. Deterministic: the same inputs always
produce the same exercises, so the buffer can be refilled offline.
"""

from __future__ import annotations

from typing import Sequence

from src.practice.models import Exercise, ExerciseOption, ExerciseType, Hint, TopicRef, clamp_difficulty

from .catalog import complete_topic

QUESTION_TEMPLATES = [
    'Which statement about "{subtopic}" is correct?',
    'What best describes the concept "{subtopic}"?',
    'Which of the following properties belongs to "{subtopic}"?',
    'In "{topic}", what is characteristic of "{subtopic}"?',
]

DECOY_OPTIONS = [
    "A false statement that sounds plausible",
    "Another false statement",
    "An obviously false statement",
]

FALLBACK_HINTS = [
    "Think about what the term means.",
    "Recall the definition.",
    "Look closely at the answer options.",
]

FALLBACK_SOLUTION = "The correct answer follows from the definition."


def generate_fallback_exercises(
    topics: Sequence[TopicRef],
    difficulty: int = 5,
    count: int = 5,
) -> list[Exercise]:
    """
    Build ``count`` offline multiple-choice exercises.

    Topics are used round-robin; the question template rotates with the
    exercise index.

    Args:
        topics: Selected topics (empty -> no exercises)
        difficulty: Difficulty level stamped on each exercise
        count: Number of exercises to produce

    Returns:
        Exercises flagged ``offline=True``
    """
    if not topics or count <= 0:
        return []

    level = clamp_difficulty(difficulty)
    exercises = []
    for index in range(count):
        topic = complete_topic(topics[index % len(topics)])
        subtopic = topic.unterthema or "Allgemein"
        thema = topic.thema or "Mathematik"
        template = QUESTION_TEMPLATES[index % len(QUESTION_TEMPLATES)]

        options = [
            ExerciseOption(id="A", text=f"A fundamental property of {subtopic}", is_correct=True),
        ]
        options.extend(
            ExerciseOption(id=letter, text=text, is_correct=False)
            for letter, text in zip("BCD", DECOY_OPTIONS)
        )

        exercises.append(
            Exercise(
                id=f"fallback-{thema}-{subtopic}-{level}-{index}",
                type=ExerciseType.MULTIPLE_CHOICE,
                difficulty=level,
                topic=thema,
                subtopic=subtopic,
                question=template.format(topic=thema, subtopic=subtopic),
                options=tuple(options),
                hints=tuple(Hint(level=i, text=t) for i, t in enumerate(FALLBACK_HINTS, start=1)),
                explanation=FALLBACK_SOLUTION,
                solution=FALLBACK_SOLUTION,
                source="fallback",
                offline=True,
            )
        )
    return exercises

"""Exercise generation for the practice feed.

Sources:
1. Remote generator service (HTTP, JSON batches of exercises)
2. Local fallback templates when the service is slow, down or misconfigured

Usage:
    from src.generation import ExerciseGeneratorClient

    async with ExerciseGeneratorClient() as client:
        exercises = await client.generate(topics, difficulty=5, count=5)
"""
from src.generation.catalog import TOPIC_CATALOG, complete_topic, get_local_topics
from src.generation.exercise_client import ExerciseGeneratorClient, GenerationRequest
from src.generation.fallback import generate_fallback_exercises
from src.generation.parsing import parse_exercises, parse_json_response

__all__ = [
    "ExerciseGeneratorClient",
    "GenerationRequest",
    "generate_fallback_exercises",
    "parse_json_response",
    "parse_exercises",
    "TOPIC_CATALOG",
    "get_local_topics",
    "complete_topic",
]

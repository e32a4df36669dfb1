"""
Exercise Generator client.

Requests batches of exercises from the external generator service over HTTP.
Every request carries a hard timeout; any failure (missing credentials,
network error, timeout, non-2xx, malformed payload) degrades to the local
fallback generator so the practice buffer never starves.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Sequence

import httpx
from loguru import logger

from config import Settings, get_settings
from src.practice.errors import GenerationFailure, ResponseParseFailure
from src.practice.models import Exercise, TopicRef, clamp_difficulty

from .fallback import generate_fallback_exercises
from .parsing import parse_exercises, parse_json_response


@dataclass
class GenerationRequest:
    """Request payload for the adaptive generation endpoint."""

    topics: list[TopicRef]
    difficulty_level: int
    question_count: int
    user_context: dict[str, Any] = field(default_factory=dict)
    provider: str = "claude"
    model: str | None = None
    api_key: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert request to API payload format."""
        payload: dict[str, Any] = {
            "topics": [t.model_dump() for t in self.topics],
            "difficultyLevel": self.difficulty_level,
            "questionCount": self.question_count,
            "userContext": self.user_context,
            "provider": self.provider,
            "apiKey": self.api_key,
        }
        if self.model:
            payload["model"] = self.model
        return payload


class ExerciseGeneratorClient:
    """HTTP client for the exercise generator service with offline fallback."""

    def __init__(
        self,
        settings: Settings | None = None,
        api_url: str | None = None,
        api_key: str | None = None,
        timeout_ms: int | None = None,
    ):
        """
        Initialize generator client.

        Args:
            settings: Settings instance (cached settings if None)
            api_url: Override for the full generation endpoint URL
            api_key: Override for the provider API key
            timeout_ms: Override for the hard request timeout
        """
        self.settings = settings or get_settings()
        self.api_url = api_url or self.settings.get_generator_url()
        self.api_key = api_key if api_key is not None else self.settings.generator_api_key
        self.timeout_seconds = (timeout_ms or self.settings.generator_timeout_ms) / 1000.0
        self.client = httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout_seconds),
            follow_redirects=True,
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self) -> "ExerciseGeneratorClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def generate(
        self,
        topics: Sequence[TopicRef],
        difficulty: int,
        count: int,
    ) -> list[Exercise]:
        """
        Get ``count`` exercises at ``difficulty`` for the topic set.

        Never raises for service problems: failures are logged and answered
        with locally synthesized exercises.
        """
        level = clamp_difficulty(difficulty)
        try:
            exercises = await asyncio.wait_for(
                self.fetch(topics, level, count),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Exercise generation timed out after {}s, using local fallback",
                self.timeout_seconds,
            )
        except GenerationFailure as e:
            logger.warning("Exercise generation failed: {}. Using local fallback", e)
        else:
            if exercises:
                logger.debug("Generator returned {} exercises at level {}", len(exercises), level)
                return exercises[:count]
            logger.warning("Generator returned no exercises, using local fallback")

        return generate_fallback_exercises(list(topics), level, count)

    async def fetch(
        self,
        topics: Sequence[TopicRef],
        difficulty: int,
        count: int,
    ) -> list[Exercise]:
        """
        Call the generator service without fallback.

        Raises:
            GenerationFailure: On missing credentials or transport errors
            ResponseParseFailure: On unparseable or unsuccessful payloads
        """
        if not topics:
            raise GenerationFailure("no topics selected")
        if not self.api_key:
            raise GenerationFailure("no generator credentials configured")

        request = GenerationRequest(
            topics=list(topics),
            difficulty_level=difficulty,
            question_count=count,
            user_context={
                "gradeLevel": self.settings.grade_level,
                "courseType": self.settings.course_type,
            },
            provider=self.settings.generator_provider,
            model=self.settings.generator_model,
            api_key=self.api_key,
        )

        try:
            response = await self.client.post(self.api_url, json=request.to_dict())
            response.raise_for_status()
        except httpx.TimeoutException as e:
            raise GenerationFailure(f"generator request timed out: {e}") from e
        except httpx.HTTPStatusError as e:
            raise GenerationFailure(f"generator returned HTTP {e.response.status_code}") from e
        except httpx.RequestError as e:
            raise GenerationFailure(f"generator unreachable: {e}") from e

        raw = response.text
        try:
            payload = response.json()
        except ValueError:
            payload = parse_json_response(raw)
        if not isinstance(payload, dict):
            raise ResponseParseFailure("generator response is not a JSON object", raw)
        if not payload.get("success"):
            raise ResponseParseFailure(
                f"generator reported failure: {payload.get('error', 'unknown error')}", raw
            )
        return parse_exercises(payload, raw)

    async def health_check(self) -> bool:
        """
        Check if the generator service is reachable.

        Returns:
            True if the service answered with a 2xx status, False otherwise
        """
        try:
            response = await self.client.get(self.api_url, timeout=5.0)
            return response.is_success
        except httpx.HTTPError:
            return False

"""
Generator payload parsing.

The generator service normally answers with JSON, but text-generation
backends sometimes wrap it in a markdown code fence or surround it with
prose. These helpers recover the JSON object and validate each exercise.
"""

from __future__ import annotations

import json
import re
from typing import Any

from loguru import logger
from pydantic import ValidationError

from src.practice.errors import ResponseParseFailure
from src.practice.models import Exercise

_FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)```")
_OBJECT_RE = re.compile(r"\{[\s\S]*\}")


def parse_json_response(raw: str) -> dict[str, Any]:
    """
    Extract a JSON object from raw response text.

    Tries a fenced block first, then the outermost brace pair, then the
    whole text.

    Raises:
        ResponseParseFailure: If no candidate parses as a JSON object
    """
    candidates = []
    fenced = _FENCE_RE.search(raw)
    if fenced:
        candidates.append(fenced.group(1).strip())
    braced = _OBJECT_RE.search(raw)
    if braced:
        candidates.append(braced.group(0))
    candidates.append(raw)

    for candidate in candidates:
        try:
            data = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(data, dict):
            return data
    raise ResponseParseFailure("generator response is not a JSON object", raw)


def parse_exercises(payload: dict[str, Any], raw: str = "") -> list[Exercise]:
    """
    Validate the ``questions`` list of a generator payload.

    Individual malformed exercises are dropped with a warning; a payload
    with no usable exercise at all is a parse failure.
    """
    questions = payload.get("questions")
    if not isinstance(questions, list):
        raise ResponseParseFailure("generator payload has no 'questions' list", raw)

    exercises = []
    for index, item in enumerate(questions):
        try:
            exercises.append(Exercise.model_validate(item))
        except ValidationError as exc:
            logger.warning(
                "Dropping malformed exercise #{} from generator: {} error(s)",
                index,
                exc.error_count(),
            )
    if questions and not exercises:
        raise ResponseParseFailure("no valid exercise in generator payload", raw)
    return exercises

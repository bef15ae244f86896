# ─────────────────────────────────────────────────────────────────────────────
# Response Normalizer — provider output → declared response shape
# ─────────────────────────────────────────────────────────────────────────────
# Models often wrap JSON in markdown fences even when told not to. Fences
# are stripped; anything that still fails to parse is a terminal error.
# ─────────────────────────────────────────────────────────────────────────────


import json
import math
import re
from collections.abc import Sequence
from typing import Any

from pydantic import ValidationError

from gateway.exceptions import BadUpstreamResponseError
from gateway.schemas import ExerciseMatch

_FENCE = re.compile(r"```(?:json)?", re.IGNORECASE)


def strip_code_fences(text: str) -> str:
    """Remove every ```json / ``` marker and surrounding whitespace."""
    return _FENCE.sub("", text).strip()


def parse_json_payload(text: str) -> Any:
    """Parse provider text as JSON after stripping fences."""
    cleaned = strip_code_fences(text)
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise BadUpstreamResponseError(f"invalid JSON at char {e.pos}: {e.msg}") from None


def parse_json_object(text: str) -> dict[str, Any]:
    """Like parse_json_payload, but the top level must be an object."""
    payload = parse_json_payload(text)
    if not isinstance(payload, dict):
        raise BadUpstreamResponseError(f"expected a JSON object, got {type(payload).__name__}")
    return payload


def check_embedding(vector: Sequence[float], dimensions: int) -> list[float]:
    """Return the vector unchanged if it is finite, numeric and correctly sized."""
    if len(vector) != dimensions:
        raise BadUpstreamResponseError(
            f"embedding has {len(vector)} dimensions, expected {dimensions}"
        )
    if not all(
        isinstance(v, int | float) and not isinstance(v, bool) and math.isfinite(v) for v in vector
    ):
        raise BadUpstreamResponseError("embedding contains non-numeric values")
    return list(vector)


def to_exercise_matches(rows: Sequence[dict[str, Any]], limit: int) -> list[ExerciseMatch]:
    """Map store rows to ExerciseMatch, keeping store order (no re-ranking)."""
    try:
        return [ExerciseMatch.model_validate(row) for row in rows[:limit]]
    except ValidationError as e:
        raise BadUpstreamResponseError(f"unexpected match_exercises row: {e.error_count()} errors") from None

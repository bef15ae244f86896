# ─────────────────────────────────────────────────────────────────────────────
# Input Validator — bounded body read + strict schema decoding
# ─────────────────────────────────────────────────────────────────────────────
# Runs after the auth gate and before any model call. The body is read as a
# stream so an oversized upload is rejected without buffering all of it.
# ─────────────────────────────────────────────────────────────────────────────


from collections.abc import Sequence
from typing import TypeVar

import structlog
from pydantic import BaseModel, ValidationError
from starlette.requests import Request

from gateway.exceptions import InvalidArgumentError, PayloadTooLargeError

logger = structlog.get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def field_name(loc: Sequence[int | str]) -> str:
    """Dotted field path for an error location, e.g. ``images.0.data``."""
    return ".".join(str(part) for part in loc) or "body"


async def read_body(request: Request, limit_bytes: int) -> bytes:
    """Read the request body, failing as soon as it exceeds ``limit_bytes``."""
    declared = request.headers.get("content-length", "")
    if declared.isdigit() and int(declared) > limit_bytes:
        raise PayloadTooLargeError(limit_bytes)

    body = bytearray()
    async for chunk in request.stream():
        body.extend(chunk)
        if len(body) > limit_bytes:
            raise PayloadTooLargeError(limit_bytes)
    return bytes(body)


def decode_request(raw: bytes, model: type[ModelT]) -> ModelT:
    """Decode JSON bytes into ``model`` or raise InvalidArgumentError.

    Every offending field is collected (declaration order); the first one
    is named in the error so the response is deterministic.
    """
    try:
        return model.model_validate_json(raw)
    except ValidationError as e:
        errors = e.errors(include_url=False)
        fields = [field_name(err["loc"]) for err in errors]
        logger.info("request_validation_failed", schema=model.__name__, fields=fields)
        raise InvalidArgumentError(fields[0], errors[0]["msg"], fields) from None


async def decode_body(request: Request, model: type[ModelT], limit_bytes: int) -> ModelT:
    """Size ceiling first, then JSON + schema."""
    raw = await read_body(request, limit_bytes)
    return decode_request(raw, model)

# ─────────────────────────────────────────────────────────────────────────────
# Pydantic v2 Request / Response Schemas
# ─────────────────────────────────────────────────────────────────────────────
# Request models are strict decoders: a body either becomes one of these
# values or is rejected with InvalidArgument before any handler logic runs.
# ─────────────────────────────────────────────────────────────────────────────


import base64
import binascii
from dataclasses import dataclass, field, replace
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from gateway.providers.protocol import ImagePart

MAX_QUERY_LENGTH = 500
MAX_IMAGES = 16


# ── Auth ─────────────────────────────────────────────────────────────────────


class Tier(StrEnum):
    """Subscription tier."""

    free = "free"
    pro = "pro"


@dataclass(frozen=True)
class AuthContext:
    """Resolved caller identity. Lives for one request, never cached."""

    user_id: str
    token: str = field(repr=False)  # forwarded to the store for RLS, never logged
    tier: Tier = Tier.free

    def as_pro(self) -> "AuthContext":
        return replace(self, tier=Tier.pro)


# ── analyze-workout ──────────────────────────────────────────────────────────


class ImageMimeType(StrEnum):
    """Image formats accepted by the vision model."""

    jpeg = "image/jpeg"
    png = "image/png"
    webp = "image/webp"
    heic = "image/heic"
    heif = "image/heif"


class ImageInput(BaseModel):
    """One base64-encoded image."""

    model_config = ConfigDict(populate_by_name=True)

    data: str = Field(..., min_length=1, description="Base64-encoded image bytes")
    mime_type: ImageMimeType = Field(..., alias="mimeType")

    @field_validator("data")
    @classmethod
    def data_must_be_base64(cls, v: str) -> str:
        try:
            base64.b64decode(v, validate=True)
        except (binascii.Error, ValueError):
            raise ValueError("must be base64-encoded") from None
        return v

    def to_part(self) -> ImagePart:
        return ImagePart(data=base64.b64decode(self.data), mime_type=self.mime_type.value)


class AnalysisRequest(BaseModel):
    """Images plus the analysis prompt chosen by the client."""

    # Legacy single-image body; folded into ``images`` and never serialized.
    image: str | None = Field(default=None, exclude=True)
    images: list[ImageInput] = Field(..., min_length=1, max_length=MAX_IMAGES)
    prompt: str = Field(..., min_length=1)

    @model_validator(mode="before")
    @classmethod
    def accept_single_image(cls, data: Any) -> Any:
        """Older web clients send ``{"image": <base64>, "prompt": ...}`` (JPEG).

        A non-string ``image`` is left alone so it fails as ``image``.
        """
        if isinstance(data, dict) and "images" not in data and isinstance(data.get("image"), str):
            data = {**data, "images": [{"data": data["image"], "mimeType": ImageMimeType.jpeg.value}]}
        return data

    @field_validator("prompt")
    @classmethod
    def prompt_must_have_text(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v.strip()


# ── generate-plan ────────────────────────────────────────────────────────────


class Goal(StrEnum):
    muscle_gain = "Muscle Gain"
    fat_loss = "Fat Loss"
    strength = "Strength"
    endurance = "Endurance"


class Equipment(StrEnum):
    full_gym = "Full Gym"
    dumbbells = "Dumbbells"
    resistance_bands = "Resistance Bands"
    bodyweight = "Bodyweight"


class Experience(StrEnum):
    beginner = "Beginner"
    intermediate = "Intermediate"
    advanced = "Advanced"


class PlanRequest(BaseModel):
    """Closed-enumeration plan preferences."""

    model_config = ConfigDict(populate_by_name=True)

    goal: Goal
    # strict: 3.5, 3.0, "3" and true are all rejected
    days_per_week: int = Field(..., alias="daysPerWeek", ge=1, le=7, strict=True)
    equipment: Equipment
    experience: Experience


# ── search-exercises ─────────────────────────────────────────────────────────


class SearchRequest(BaseModel):
    """Free-text exercise query."""

    query: str

    @field_validator("query")
    @classmethod
    def normalize_query(cls, v: str) -> str:
        normalized = " ".join(v.split())
        if not normalized:
            raise ValueError("must not be empty")
        if len(normalized) > MAX_QUERY_LENGTH:
            raise ValueError(f"must be at most {MAX_QUERY_LENGTH} characters")
        return normalized


class ExerciseMatch(BaseModel):
    """Row returned by the match_exercises similarity RPC."""

    model_config = ConfigDict(extra="allow")

    id: str | int | None = None
    name: str | None = None
    body_part: str | None = None
    target: str | None = None
    equipment: str | None = None
    gif_url: str | None = None
    similarity: float | None = None


class SearchResponse(BaseModel):
    """Exercises ordered by similarity, as returned by the store."""

    exercises: list[ExerciseMatch]


# ── Health ───────────────────────────────────────────────────────────────────


class LivenessResponse(BaseModel):
    """Liveness probe — minimal, near-zero cost."""

    status: str = "ok"


class ReadinessResponse(BaseModel):
    """Readiness probe — is the configuration complete enough to serve?"""

    status: str  # "ready" or "not_ready"
    store_configured: bool
    model_configured: bool

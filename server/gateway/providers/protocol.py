# ─────────────────────────────────────────────────────────────────────────────
# Collaborator Protocols — runtime_checkable interfaces for external services
# ─────────────────────────────────────────────────────────────────────────────
# The pipeline only talks to these Protocols. Concrete adapters (Supabase,
# Gemini) live next to this file; tests substitute AsyncMock fakes.
# ─────────────────────────────────────────────────────────────────────────────

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol, runtime_checkable


@dataclass(frozen=True)
class ImagePart:
    """One decoded image attached to a generation request."""

    data: bytes
    mime_type: str


@runtime_checkable
class IdentityStore(Protocol):
    """Verifies bearer tokens (e.g., Supabase Auth)."""

    async def get_user_id(self, token: str) -> str | None: ...


@runtime_checkable
class EntitlementStore(Protocol):
    """Reads the caller's paid-access flag (e.g., profiles.is_pro)."""

    async def is_pro(self, user_id: str, token: str) -> bool: ...


@runtime_checkable
class ExerciseStore(Protocol):
    """Exercise catalog: similarity search and recent workout history."""

    async def match_exercises(
        self,
        embedding: Sequence[float],
        match_threshold: float,
        match_count: int,
        token: str,
    ) -> list[dict[str, Any]]: ...

    async def recent_workouts(
        self, user_id: str, since: datetime, limit: int, token: str
    ) -> list[dict[str, Any]]: ...


@runtime_checkable
class GenerativeModel(Protocol):
    """Text generation and embeddings (e.g., Gemini)."""

    @property
    def name(self) -> str: ...

    async def generate(
        self,
        prompt: str,
        images: Sequence[ImagePart] = (),
        json_output: bool = False,
    ) -> str: ...

    async def embed(self, text: str) -> list[float]: ...

"""Supabase implementation of IdentityStore, EntitlementStore and ExerciseStore."""

from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any

import httpx
import structlog
from supabase import AsyncClient, create_async_client
from supabase.lib.client_options import AsyncClientOptions

from gateway.config import Settings
from gateway.exceptions import ProviderNotConfiguredError

logger = structlog.get_logger(__name__)

_HISTORY_COLUMNS = "date, exercise, reps, weight, score"


class SupabaseStore:
    """Supabase-backed identity, entitlement and exercise store.

    Every call gets its own client on its own ``httpx.AsyncClient``, shared
    by auth and PostgREST and closed when the call returns. The caller's
    JWT is forwarded to PostgREST so row-level security applies (unless a
    service-role key is configured).
    """

    PROFILES_TABLE = "profiles"
    WORKOUTS_TABLE = "workouts"
    MATCH_RPC = "match_exercises"

    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    def _credentials(self) -> tuple[str, str, bool]:
        if not self._settings.supabase_url:
            raise ProviderNotConfiguredError("SUPABASE_URL")
        service_key = self._settings.supabase_service_role_key.get_secret_value()
        key = service_key or self._settings.supabase_anon_key.get_secret_value()
        if not key:
            raise ProviderNotConfiguredError("SUPABASE_ANON_KEY")
        return self._settings.supabase_url, key, bool(service_key)

    @asynccontextmanager
    async def _client(self, token: str | None = None) -> AsyncIterator[AsyncClient]:
        """Client scoped to one store call; its HTTP connections close on exit.

        With ``token`` and no service-role key, PostgREST runs as that user.
        """
        url, key, is_service = self._credentials()
        async with httpx.AsyncClient(follow_redirects=True) as http:
            client = await create_async_client(
                url,
                key,
                options=AsyncClientOptions(
                    auto_refresh_token=False,
                    persist_session=False,
                    httpx_client=http,
                ),
            )
            if token and not is_service:
                client.postgrest.auth(token)
            yield client

    # ── IdentityStore ────────────────────────────────────────────────────────

    async def get_user_id(self, token: str) -> str | None:
        async with self._client() as client:
            response = await client.auth.get_user(token)
        if response is None or response.user is None:
            return None
        return str(response.user.id)

    # ── EntitlementStore ─────────────────────────────────────────────────────

    async def is_pro(self, user_id: str, token: str) -> bool:
        async with self._client(token) as client:
            result = await (
                client.table(self.PROFILES_TABLE)
                .select("is_pro")
                .eq("id", user_id)
                .maybe_single()
                .execute()
            )
        # maybe_single() yields None (not an empty response) when no row matches
        if result is None or not result.data:
            return False
        return result.data.get("is_pro") is True

    # ── ExerciseStore ────────────────────────────────────────────────────────

    async def match_exercises(
        self,
        embedding: Sequence[float],
        match_threshold: float,
        match_count: int,
        token: str,
    ) -> list[dict[str, Any]]:
        async with self._client(token) as client:
            result = await client.rpc(
                self.MATCH_RPC,
                {
                    "query_embedding": list(embedding),
                    "match_threshold": match_threshold,
                    "match_count": match_count,
                },
            ).execute()
        return list(result.data or [])

    async def recent_workouts(
        self, user_id: str, since: datetime, limit: int, token: str
    ) -> list[dict[str, Any]]:
        async with self._client(token) as client:
            result = await (
                client.table(self.WORKOUTS_TABLE)
                .select(_HISTORY_COLUMNS)
                .eq("user_id", user_id)
                .gte("created_at", since.isoformat())
                .order("created_at", desc=True)
                .limit(limit)
                .execute()
            )
        return list(result.data or [])

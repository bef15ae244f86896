# ─────────────────────────────────────────────────────────────────────────────
# Test Fixtures — shared across all tests
# ─────────────────────────────────────────────────────────────────────────────
# Collaborators (identity, entitlement, exercise store, model) are AsyncMock
# fakes wired onto app.state; nothing touches Supabase or Gemini.
# ─────────────────────────────────────────────────────────────────────────────

import base64
import json
import os
from collections.abc import Iterator
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from gateway.config import Settings
from gateway.main import create_app
from gateway.services.analysis import AnalysisService
from gateway.services.metrics import GatewayMetrics
from gateway.services.planning import PlanService
from gateway.services.search import SearchService

VALID_TOKEN = "valid-token"
FREE_TOKEN = "free-token"
PRO_USER = "user-pro"
FREE_USER = "user-free"

AUTH = {"Authorization": f"Bearer {VALID_TOKEN}"}
FREE_AUTH = {"Authorization": f"Bearer {FREE_TOKEN}"}

DEFAULT_ORIGIN = "https://train-anywhere.vercel.app"
TEST_ORIGINS = f"{DEFAULT_ORIGIN},http://localhost:5173"

JPEG_B64 = base64.b64encode(b"\xff\xd8\xff\xe0fake-jpeg").decode()

SAMPLE_PLAN = {
    "name": "Hypertrophy Split",
    "description": "Four-day upper/lower split.",
    "schedule": {
        "weeks": [
            {
                "week_order": 1,
                "days": [
                    {
                        "day": "Monday",
                        "focus": "Upper Body",
                        "exercises": [{"name": "Bench Press", "sets": 4, "reps": "6-8"}],
                    }
                ],
            }
        ]
    },
}

SAMPLE_ANALYSIS = {
    "date": "2026-10-01",
    "exercises": [{"name": "Squat", "sets": 5, "reps": 5, "weight": 100}],
}


def exercise_rows(n: int) -> list[dict]:
    """Rows shaped like the match_exercises RPC output, most similar first."""
    return [
        {
            "id": f"ex-{i}",
            "name": f"Exercise {i}",
            "body_part": "upper legs",
            "target": "quads",
            "equipment": "body weight",
            "gif_url": f"https://cdn.example/{i}.gif",
            "similarity": round(0.95 - i * 0.05, 2),
        }
        for i in range(n)
    ]


@pytest.fixture
def test_settings() -> Settings:
    """Settings configured for testing — fake credentials, no rate limit."""
    return Settings(
        supabase_url="https://test.supabase.co",
        supabase_anon_key="anon-key",
        gemini_api_key="gemini-test-key",
        allowed_origins=TEST_ORIGINS,
        rate_limit_enabled=False,
        log_json=False,
        log_level="DEBUG",
    )


@pytest.fixture
def identity_store() -> MagicMock:
    """Knows two tokens: one pro user, one free user."""
    users = {VALID_TOKEN: PRO_USER, FREE_TOKEN: FREE_USER}
    store = MagicMock()
    store.get_user_id = AsyncMock(side_effect=lambda token: users.get(token))
    return store


@pytest.fixture
def entitlement_store() -> MagicMock:
    store = MagicMock()
    store.is_pro = AsyncMock(side_effect=lambda user_id, token: user_id == PRO_USER)
    return store


@pytest.fixture
def exercise_store() -> MagicMock:
    store = MagicMock()
    store.match_exercises = AsyncMock(return_value=exercise_rows(5))
    store.recent_workouts = AsyncMock(return_value=[])
    return store


@pytest.fixture
def model(test_settings: Settings) -> MagicMock:
    """GenerativeModel fake. generate() returns a plan unless overridden."""
    fake = MagicMock()
    fake.name = "gemini-test"
    fake.generate = AsyncMock(return_value=json.dumps(SAMPLE_PLAN))
    fake.embed = AsyncMock(return_value=[0.01] * test_settings.embedding_dimensions)
    return fake


@pytest.fixture
def metrics() -> GatewayMetrics:
    return GatewayMetrics()


def wire_state(
    app: FastAPI,
    settings: Settings,
    *,
    identity_store: MagicMock,
    entitlement_store: MagicMock,
    exercise_store: MagicMock,
    model: MagicMock,
    metrics: GatewayMetrics,
) -> None:
    """Same shape as gateway.main.build_state, with fakes."""
    app.state.settings = settings
    app.state.metrics = metrics
    app.state.identity_store = identity_store
    app.state.entitlement_store = entitlement_store
    app.state.analysis_service = AnalysisService(model, settings, metrics=metrics)
    app.state.plan_service = PlanService(model, exercise_store, settings, metrics=metrics)
    app.state.search_service = SearchService(model, exercise_store, settings, metrics=metrics)


@pytest.fixture
def app_env() -> Iterator[dict[str, str]]:
    """Env vars read by create_app() (CORS allow-list, limiter, logging)."""
    from gateway.config import get_settings

    get_settings.cache_clear()
    env_overrides = {
        "ALLOWED_ORIGINS": TEST_ORIGINS,
        "RATE_LIMIT_ENABLED": "false",
        "LOG_JSON": "false",
        "LOG_LEVEL": "DEBUG",
    }
    os.environ.update(env_overrides)
    try:
        yield env_overrides
    finally:
        for k in env_overrides:
            os.environ.pop(k, None)
        get_settings.cache_clear()


@pytest.fixture
def app(
    app_env: dict[str, str],
    test_settings: Settings,
    identity_store: MagicMock,
    entitlement_store: MagicMock,
    exercise_store: MagicMock,
    model: MagicMock,
    metrics: GatewayMetrics,
) -> FastAPI:
    """App with fakes on app.state (lifespan is not run by TestClient without `with`)."""
    application = create_app()
    wire_state(
        application,
        test_settings,
        identity_store=identity_store,
        entitlement_store=entitlement_store,
        exercise_store=exercise_store,
        model=model,
        metrics=metrics,
    )
    return application


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    """FastAPI TestClient; server exceptions become responses, as in production."""
    return TestClient(app, raise_server_exceptions=False)

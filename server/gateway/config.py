# ─────────────────────────────────────────────────────────────────────────────
# Settings — Pydantic v2 BaseSettings
# ─────────────────────────────────────────────────────────────────────────────


from functools import lru_cache

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_ALLOWED_ORIGINS = (
    "https://train-anywhere.vercel.app,"
    "https://trainanywhere.app,"
    "http://localhost:5173,"
    "http://localhost:3000"
)


class Settings(BaseSettings):
    """Gateway configuration sourced from environment variables.

    Built once per process and handed to every service constructor.
    Nothing in the request path mutates it.
    """

    model_config = SettingsConfigDict(env_prefix="", env_file=".env", extra="ignore")

    # ── Data store (Supabase) ────────────────────────────────────────────────
    supabase_url: str = ""
    # Anon key: store calls run under the caller's JWT (row-level security).
    supabase_anon_key: SecretStr = SecretStr("")
    # Optional. When set, store reads bypass RLS instead of forwarding the JWT.
    supabase_service_role_key: SecretStr = SecretStr("")

    # ── Model provider (Gemini) ──────────────────────────────────────────────
    # SecretStr keeps the key out of logs, repr() and model_dump().
    gemini_api_key: SecretStr = SecretStr("")
    gemini_model: str = "gemini-2.5-flash"
    gemini_embedding_model: str = "gemini-embedding-001"
    embedding_dimensions: int = 768  # Matches vector(768) in exercise_embeddings

    # ── CORS ─────────────────────────────────────────────────────────────────
    # Comma-separated. The first entry is the default returned to unknown origins.
    allowed_origins: str = DEFAULT_ALLOWED_ORIGINS
    cors_allow_all: bool = False
    # Comma-separated paths served with "Access-Control-Allow-Origin: *".
    cors_wildcard_paths: str = ""

    # ── Limits ───────────────────────────────────────────────────────────────
    max_payload_bytes: int = 20 * 1024 * 1024
    search_match_threshold: float = 0.5
    search_match_count: int = 5

    # ── Plan context (history + recommended exercises in the prompt) ────────
    plan_context_enabled: bool = False
    plan_history_days: int = 30
    plan_history_limit: int = 50
    plan_history_in_prompt: int = 10
    plan_match_threshold: float = 0.3
    plan_match_count: int = 20
    plan_recommendations_in_prompt: int = 10

    # ── Rate limiting (slowapi format, e.g. "60/minute") ─────────────────────
    rate_limit: str = "60/minute"
    rate_limit_enabled: bool = True

    # ── Logging / tracing ────────────────────────────────────────────────────
    log_level: str = "INFO"
    log_json: bool = True
    otel_exporter: str = ""  # "" (disabled) or "console"

    @property
    def origin_allow_list(self) -> list[str]:
        """Parsed allow-list, order preserved."""
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]

    @property
    def wildcard_paths(self) -> frozenset[str]:
        return frozenset(p.strip() for p in self.cors_wildcard_paths.split(",") if p.strip())

    @property
    def store_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_anon_key.get_secret_value())

    @property
    def model_configured(self) -> bool:
        return bool(self.gemini_api_key.get_secret_value())


@lru_cache
def get_settings() -> Settings:
    """Cached settings singleton."""
    return Settings()

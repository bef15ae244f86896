# ─────────────────────────────────────────────────────────────────────────────
# Rate Limiter — shared slowapi instance
# ─────────────────────────────────────────────────────────────────────────────
# Own module so route modules can import the limiter without importing main.
# ─────────────────────────────────────────────────────────────────────────────


from slowapi import Limiter
from slowapi.util import get_remote_address

from gateway.config import get_settings

# Key function: rate-limit by client IP (reads X-Forwarded-For behind a proxy).
limiter = Limiter(key_func=get_remote_address)


def ai_rate_limit() -> str:
    """Per-IP limit for the model-backed endpoints, e.g. "60/minute"."""
    return get_settings().rate_limit


def parse_retry_after(rate_limit: str) -> str:
    """Window length in seconds from a slowapi limit string."""
    windows = {"second": 1, "minute": 60, "hour": 3600, "day": 86400}
    try:
        _, window = rate_limit.strip().split("/")
        return str(windows.get(window.strip(), 60))
    except (ValueError, AttributeError):
        return "60"

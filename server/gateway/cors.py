# ─────────────────────────────────────────────────────────────────────────────
# CORS Negotiation — per-response Access-Control-* headers
# ─────────────────────────────────────────────────────────────────────────────
# Starlette's CORSMiddleware omits the header for unknown origins and answers
# disallowed pre-flights with 400. Browser clients here expect the default
# origin instead, on every response, so negotiation is done explicitly.
# ─────────────────────────────────────────────────────────────────────────────


from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from gateway.config import Settings

logger = structlog.get_logger(__name__)

ALLOW_HEADERS = "authorization, x-client-info, apikey, content-type"
ALLOW_METHODS = "POST, OPTIONS"


@dataclass(frozen=True)
class CorsPolicy:
    """Origin policy: wildcard, or a fixed allow-list with a default entry."""

    allowed_origins: tuple[str, ...] = ()
    allow_all: bool = False

    def __post_init__(self) -> None:
        if not self.allow_all and not self.allowed_origins:
            raise ValueError("An allow-list policy needs at least one origin")

    @classmethod
    def wildcard(cls) -> "CorsPolicy":
        return cls(allow_all=True)

    @classmethod
    def allow_list(cls, origins: Sequence[str]) -> "CorsPolicy":
        return cls(allowed_origins=tuple(origins))

    @property
    def default_origin(self) -> str:
        return "*" if self.allow_all else self.allowed_origins[0]

    def allow_origin(self, origin: str | None) -> str:
        """Value for Access-Control-Allow-Origin.

        A listed origin is echoed verbatim; anything else gets the default.
        """
        if self.allow_all:
            return "*"
        if origin and origin in self.allowed_origins:
            return origin
        return self.allowed_origins[0]

    def headers(self, origin: str | None) -> dict[str, str]:
        headers = {
            "Access-Control-Allow-Origin": self.allow_origin(origin),
            "Access-Control-Allow-Headers": ALLOW_HEADERS,
            "Access-Control-Allow-Methods": ALLOW_METHODS,
        }
        if not self.allow_all:
            headers["Vary"] = "Origin"
        return headers


@dataclass(frozen=True)
class CorsNegotiator:
    """Chooses the policy for a request path."""

    default: CorsPolicy
    wildcard_paths: frozenset[str] = frozenset()

    @classmethod
    def from_settings(cls, settings: Settings) -> "CorsNegotiator":
        origins = settings.origin_allow_list
        if settings.cors_allow_all:
            default = CorsPolicy.wildcard()
        elif not origins:
            logger.warning(
                "cors_no_origins_configured",
                hint="ALLOWED_ORIGINS is empty; falling back to wildcard.",
            )
            default = CorsPolicy.wildcard()
        else:
            default = CorsPolicy.allow_list(origins)
        return cls(default=default, wildcard_paths=settings.wildcard_paths)

    def policy_for(self, path: str) -> CorsPolicy:
        # suffix match so /functions/v1/<name> follows /<name>
        if any(path == p or path.endswith(p) for p in self.wildcard_paths):
            return CorsPolicy.wildcard()
        return self.default

    def headers(self, path: str, origin: str | None) -> dict[str, str]:
        return self.policy_for(path).headers(origin)


class CORSNegotiationMiddleware(BaseHTTPMiddleware):
    """Attach negotiated CORS headers to every response.

    OPTIONS pre-flights short-circuit here with an empty 200, before any
    authentication runs. Must be the outermost middleware so error responses
    are covered too.
    """

    def __init__(self, app: Any, *, negotiator: CorsNegotiator) -> None:
        super().__init__(app)
        self._negotiator = negotiator

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        headers = self._negotiator.headers(request.url.path, request.headers.get("origin"))

        if request.method == "OPTIONS":
            return Response(status_code=200, headers=headers)

        response = await call_next(request)
        response.headers.update(headers)
        return response

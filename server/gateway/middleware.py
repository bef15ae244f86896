# ─────────────────────────────────────────────────────────────────────────────
# Request Middleware — request ID, timing, structured access log
# ─────────────────────────────────────────────────────────────────────────────
# Sits inside CORS negotiation, outside UnhandledErrorMiddleware, so every
# logged status is the one the client actually receives.
# ─────────────────────────────────────────────────────────────────────────────


import re
import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = structlog.get_logger(__name__)

# Upstream proxies may assign an ID; anything else is replaced.
_CLIENT_REQUEST_ID = re.compile(r"[A-Za-z0-9_-]{8,64}")


def request_id_for(request: Request) -> str:
    """Reuse a well-formed inbound X-Request-ID, else mint an 8-char one."""
    inbound = request.headers.get("x-request-id", "")
    if _CLIENT_REQUEST_ID.fullmatch(inbound):
        return inbound
    return uuid.uuid4().hex[:8]


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Adds a request ID, binds it to the log context, and logs timing.

    Skips the access log for /health probes. Pre-flights never get here;
    CORS negotiation answers them first.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request_id_for(request)
        request.state.request_id = request_id
        structlog.contextvars.bind_contextvars(request_id=request_id)
        start = time.perf_counter()

        try:
            response: Response = await call_next(request)
        finally:
            structlog.contextvars.unbind_contextvars("request_id")

        duration_ms = round((time.perf_counter() - start) * 1000, 1)
        path = request.url.path

        if not path.startswith("/health"):
            log = logger.warning if response.status_code >= 400 else logger.info
            log(
                "request_completed",
                request_id=request_id,
                method=request.method,
                endpoint=path.rsplit("/", 1)[-1] or "/",
                path=path,
                status=response.status_code,
                duration_ms=duration_ms,
            )

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time-Ms"] = str(duration_ms)
        return response

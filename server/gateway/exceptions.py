# ─────────────────────────────────────────────────────────────────────────────
# Gateway Exceptions + FastAPI Exception Handlers
# ─────────────────────────────────────────────────────────────────────────────
# Every pipeline stage raises a GatewayError subclass. The handlers below are
# the only place errors become HTTP responses, and every response body is
# exactly {"error": <message>}.
# ─────────────────────────────────────────────────────────────────────────────


import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

logger = structlog.get_logger(__name__)


# ── Exception hierarchy ──────────────────────────────────────────────────────


class GatewayError(Exception):
    """Base exception for all gateway pipeline errors.

    ``message`` is shown to the caller; ``detail`` is logged only.
    """

    def __init__(self, message: str, status_code: int = 400, detail: str = ""):
        self.message = message
        self.status_code = status_code
        self.detail = detail
        super().__init__(message)

    @property
    def kind(self) -> str:
        """Error-taxonomy name, e.g. ``Unauthorized`` for UnauthorizedError."""
        return type(self).__name__.removesuffix("Error")


class UnauthorizedError(GatewayError):
    """Missing, malformed, expired or unverifiable bearer credential.

    All causes produce the same response; the cause is only logged.
    """

    def __init__(self, reason: str):
        super().__init__("Unauthorized", status_code=401, detail=reason)


class SubscriptionRequiredError(GatewayError):
    """Caller is authenticated but not entitled to the capability."""

    def __init__(self, reason: str = "not_entitled"):
        super().__init__("Subscription Required", status_code=403, detail=reason)


class InvalidArgumentError(GatewayError):
    """Request body failed validation. Names the first offending field."""

    def __init__(self, field: str, reason: str, fields: list[str] | None = None):
        self.field = field
        self.fields = fields or [field]
        message = f"Invalid argument: {field}: {reason}" if field else f"Invalid argument: {reason}"
        super().__init__(message, status_code=400)


class PayloadTooLargeError(GatewayError):
    """Request body exceeds the endpoint's size ceiling."""

    def __init__(self, limit_bytes: int):
        self.limit_bytes = limit_bytes
        super().__init__(f"Payload too large: limit is {limit_bytes} bytes", status_code=400)


class UpstreamError(GatewayError):
    """The model provider or the data store call failed."""

    def __init__(
        self,
        operation: str,
        reason: str,
        message: str = "Upstream model request failed",
        status_code: int = 400,
    ):
        self.operation = operation
        super().__init__(message, status_code=status_code, detail=reason)


class ProviderNotConfiguredError(UpstreamError):
    """A required provider credential is missing from the process configuration."""

    def __init__(self, setting: str):
        super().__init__(
            "configuration",
            f"{setting} is not set",
            message="Server configuration error",
            status_code=500,
        )


class BadUpstreamResponseError(GatewayError):
    """The provider answered, but its output could not be normalized."""

    def __init__(self, reason: str):
        super().__init__("Model returned an unreadable response", status_code=400, detail=reason)


# ── Helpers ──────────────────────────────────────────────────────────────────


def error_response(
    message: str, status_code: int, headers: dict[str, str] | None = None
) -> JSONResponse:
    """The single error envelope used by every handler."""
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


def _record_error(request: Request, kind: str) -> None:
    metrics = getattr(request.app.state, "metrics", None)
    if metrics is not None:
        metrics.record_error(kind)


# ── Unhandled exceptions ─────────────────────────────────────────────────────


class UnhandledErrorMiddleware(BaseHTTPMiddleware):
    """Map exceptions that escape the router to the Unhandled envelope.

    Starlette sends Exception handlers to ServerErrorMiddleware, which sits
    outside user middleware and would skip CORS negotiation. Converting here
    keeps the response inside the CORS middleware.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            logger.error(
                "unhandled_error",
                path=request.url.path,
                error_type=type(exc).__name__,
                exc_info=exc,
            )
            _record_error(request, "Unhandled")
            return error_response("Request failed", 400)


# ── Handler registration ────────────────────────────────────────────────────


def register_exception_handlers(app: FastAPI) -> None:
    """Register all custom exception handlers on the FastAPI app.

    Services raise GatewayError subclasses; these handlers turn them into
    the error envelope -- no inline try/except in endpoints.
    """

    @app.exception_handler(GatewayError)
    async def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
        log = logger.error if exc.status_code >= 500 or isinstance(exc, UpstreamError) else logger.warning
        log(
            "gateway_error",
            path=request.url.path,
            kind=exc.kind,
            status=exc.status_code,
            error=exc.message,
            detail=exc.detail or None,
        )
        _record_error(request, exc.kind)
        return error_response(exc.message, exc.status_code)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        _record_error(request, "Routing")
        return error_response(str(exc.detail), exc.status_code, headers=exc.headers)

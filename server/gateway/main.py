# FastAPI application factory with lifespan management.
# Entrypoint: uvicorn gateway.main:create_app --factory --host 0.0.0.0 --port 8080

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import structlog
from fastapi import FastAPI
from slowapi.errors import RateLimitExceeded
from starlette.requests import Request
from starlette.responses import JSONResponse

from gateway.config import Settings, get_settings
from gateway.cors import CORSNegotiationMiddleware, CorsNegotiator
from gateway.exceptions import UnhandledErrorMiddleware, error_response, register_exception_handlers
from gateway.logging_config import configure_logging
from gateway.middleware import RequestContextMiddleware
from gateway.providers import GeminiModel, SupabaseStore
from gateway.rate_limit import limiter, parse_retry_after
from gateway.routes import analyze, health, plan, search
from gateway.routes import prometheus as prometheus_routes
from gateway.services.analysis import AnalysisService
from gateway.services.metrics import GatewayMetrics
from gateway.services.planning import PlanService
from gateway.services.search import SearchService

logger = structlog.get_logger(__name__)

# The web client calls Supabase-style URLs; both mounts serve the same routes.
FUNCTIONS_PREFIX = "/functions/v1"


async def _rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return the standard error envelope for 429s."""
    settings = get_settings()
    logger.warning(
        "rate_limit_exceeded",
        path=request.url.path,
        method=request.method,
        detail=str(exc.detail),
    )
    metrics = getattr(request.app.state, "metrics", None)
    if metrics is not None:
        metrics.record_error("RateLimited")
    return error_response(
        f"Rate limit exceeded: {exc.detail}",
        429,
        headers={"Retry-After": parse_retry_after(settings.rate_limit)},
    )


if TYPE_CHECKING:
    from opentelemetry.sdk.trace import TracerProvider


def _configure_otel(exporter_type: str) -> "TracerProvider | None":
    """Configure OpenTelemetry tracing (console exporter only)."""
    if exporter_type != "console":
        logger.warning("unknown_otel_exporter", exporter=exporter_type)
        return None

    from opentelemetry import trace
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter

    provider = TracerProvider()
    provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))
    trace.set_tracer_provider(provider)
    logger.info("otel_configured", exporter=exporter_type)
    return provider


def build_state(app: FastAPI, settings: Settings) -> None:
    """Construct adapters and services and store them on app.state."""
    metrics = GatewayMetrics()
    store = SupabaseStore(settings)
    model = GeminiModel(settings)

    app.state.settings = settings
    app.state.metrics = metrics
    app.state.identity_store = store
    app.state.entitlement_store = store
    app.state.analysis_service = AnalysisService(model, settings, metrics=metrics)
    app.state.plan_service = PlanService(model, store, settings, metrics=metrics)
    app.state.search_service = SearchService(model, store, settings, metrics=metrics)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build per-process state. Nothing here holds a network connection."""
    settings = get_settings()

    otel_provider = None
    if settings.otel_exporter:
        otel_provider = _configure_otel(settings.otel_exporter)

    build_state(app, settings)

    if not settings.store_configured:
        logger.warning("store_not_configured", hint="Set SUPABASE_URL and SUPABASE_ANON_KEY.")
    if not settings.model_configured:
        logger.warning("model_not_configured", hint="Set GEMINI_API_KEY.")
    logger.info(
        "gateway_started",
        model=settings.gemini_model,
        embedding_model=settings.gemini_embedding_model,
        plan_context_enabled=settings.plan_context_enabled,
    )

    yield

    if otel_provider is not None:
        otel_provider.shutdown()


def create_app() -> FastAPI:
    """Application factory. Invoked by: uvicorn gateway.main:create_app --factory"""
    settings = get_settings()
    configure_logging(log_level=settings.log_level, json_output=settings.log_json)

    app = FastAPI(
        title="Train Anywhere AI Gateway",
        description="Authenticated proxy for AI form analysis, plan generation and exercise search",
        version="0.1.0",
        lifespan=lifespan,
    )

    limiter.enabled = settings.rate_limit_enabled
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)  # type: ignore[arg-type]

    # Middleware order (Starlette applies in reverse): CORS → RequestContext → Unhandled
    app.add_middleware(UnhandledErrorMiddleware)
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(CORSNegotiationMiddleware, negotiator=CorsNegotiator.from_settings(settings))

    register_exception_handlers(app)

    app.include_router(health.router, tags=["health"])
    app.include_router(prometheus_routes.router, tags=["prometheus"])
    for router, tag in ((analyze.router, "analysis"), (plan.router, "plans"), (search.router, "search")):
        app.include_router(router, tags=[tag])
        app.include_router(router, prefix=FUNCTIONS_PREFIX, tags=[tag], include_in_schema=False)

    return app

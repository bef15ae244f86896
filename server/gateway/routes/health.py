# ─────────────────────────────────────────────────────────────────────────────
# Health Check Routes — liveness, readiness, and gateway metrics
# ─────────────────────────────────────────────────────────────────────────────
#   /health        → Liveness probe. Near-zero cost, always 200.
#   /health/ready  → Readiness probe. 503 until store + model credentials exist.
#   /metrics       → Gateway metrics (JSON).
# No auth on any of these; CORS is still negotiated by the middleware.
# ─────────────────────────────────────────────────────────────────────────────

from typing import Any

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from gateway.config import Settings
from gateway.dependencies import get_metrics, get_settings_dep
from gateway.schemas import LivenessResponse, ReadinessResponse
from gateway.services.metrics import GatewayMetrics

router = APIRouter()


@router.get("/health", response_model=LivenessResponse)
async def liveness() -> LivenessResponse:
    """Liveness probe — is the process alive? No deps, no I/O."""
    return LivenessResponse(status="ok")


@router.get("/health/ready", response_model=ReadinessResponse)
async def readiness(settings: Settings = Depends(get_settings_dep)) -> JSONResponse:
    """Readiness probe — can this instance serve AI requests?

    Checks configuration only; it does not call Supabase or Gemini, so a
    provider outage does not take instances out of rotation.
    """
    response = ReadinessResponse(
        status="ready" if settings.store_configured and settings.model_configured else "not_ready",
        store_configured=settings.store_configured,
        model_configured=settings.model_configured,
    )
    return JSONResponse(
        status_code=200 if response.status == "ready" else 503,
        content=response.model_dump(),
    )


@router.get("/metrics")
async def metrics_endpoint(
    metrics: GatewayMetrics = Depends(get_metrics),
) -> dict[str, Any]:
    """Gateway metrics — request/error counts and upstream latency."""
    return metrics.to_dict()

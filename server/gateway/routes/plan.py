# ─────────────────────────────────────────────────────────────────────────────
# POST /generate-plan — workout plan generation (THIN)
# ─────────────────────────────────────────────────────────────────────────────


from typing import Any

from fastapi import APIRouter, Depends, Request

from gateway.auth import require_user
from gateway.config import Settings
from gateway.dependencies import get_plan_service, get_settings_dep
from gateway.rate_limit import ai_rate_limit, limiter
from gateway.schemas import AuthContext, PlanRequest
from gateway.services.planning import PlanService
from gateway.validation import decode_body

router = APIRouter()


@router.post("/generate-plan")
@limiter.limit(ai_rate_limit)
async def generate_plan(
    request: Request,
    auth: AuthContext = Depends(require_user),
    settings: Settings = Depends(get_settings_dep),
    service: PlanService = Depends(get_plan_service),
) -> dict[str, Any]:
    """Generate a one-week plan: ``{name, description, schedule: {weeks}}``."""
    body = await decode_body(request, PlanRequest, settings.max_payload_bytes)
    return await service.generate(auth, body)

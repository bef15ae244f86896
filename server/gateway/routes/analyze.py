# ─────────────────────────────────────────────────────────────────────────────
# POST /analyze-workout — pro-only vision analysis (THIN)
# ─────────────────────────────────────────────────────────────────────────────


from typing import Any

from fastapi import APIRouter, Depends, Request

from gateway.auth import require_pro
from gateway.config import Settings
from gateway.dependencies import get_analysis_service, get_settings_dep
from gateway.rate_limit import ai_rate_limit, limiter
from gateway.schemas import AnalysisRequest, AuthContext
from gateway.services.analysis import AnalysisService
from gateway.validation import decode_body

router = APIRouter()


@router.post("/analyze-workout")
@limiter.limit(ai_rate_limit)
async def analyze_workout(
    request: Request,
    auth: AuthContext = Depends(require_pro),
    settings: Settings = Depends(get_settings_dep),
    service: AnalysisService = Depends(get_analysis_service),
) -> dict[str, Any]:
    """Analyze workout images with the caller's prompt.

    Auth and entitlement run as dependencies, so the body is only read for
    pro callers. The response is the model's JSON object, unmodified.
    """
    body = await decode_body(request, AnalysisRequest, settings.max_payload_bytes)
    return await service.analyze(auth, body)

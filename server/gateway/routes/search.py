# ─────────────────────────────────────────────────────────────────────────────
# POST /search-exercises — semantic exercise search (THIN)
# ─────────────────────────────────────────────────────────────────────────────


from fastapi import APIRouter, Depends, Request

from gateway.auth import require_user
from gateway.config import Settings
from gateway.dependencies import get_search_service, get_settings_dep
from gateway.rate_limit import ai_rate_limit, limiter
from gateway.schemas import AuthContext, SearchRequest, SearchResponse
from gateway.services.search import SearchService
from gateway.validation import decode_body

router = APIRouter()


@router.post(
    "/search-exercises",
    response_model=SearchResponse,
    response_model_exclude_unset=True,  # rows pass through with the store's keys only
)
@limiter.limit(ai_rate_limit)
async def search_exercises(
    request: Request,
    auth: AuthContext = Depends(require_user),
    settings: Settings = Depends(get_settings_dep),
    service: SearchService = Depends(get_search_service),
) -> SearchResponse:
    """Top matches for a free-text query, most similar first."""
    body = await decode_body(request, SearchRequest, settings.max_payload_bytes)
    return await service.search(auth, body)

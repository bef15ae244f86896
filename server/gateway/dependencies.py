# ─────────────────────────────────────────────────────────────────────────────
# Dependency Injection — FastAPI Depends() providers
# ─────────────────────────────────────────────────────────────────────────────
# State flows: lifespan creates → app.state stores → Depends() injects.
# Everything on app.state is immutable config or a stateless adapter;
# GatewayMetrics is the only shared mutable object.
# ─────────────────────────────────────────────────────────────────────────────


from fastapi import Request

from gateway.config import Settings
from gateway.providers.protocol import EntitlementStore, IdentityStore
from gateway.services.analysis import AnalysisService
from gateway.services.metrics import GatewayMetrics
from gateway.services.planning import PlanService
from gateway.services.search import SearchService


def get_settings_dep(request: Request) -> Settings:
    """Inject Settings into endpoints via Depends()."""
    return request.app.state.settings  # type: ignore[no-any-return]


def get_metrics(request: Request) -> GatewayMetrics:
    """Inject GatewayMetrics into endpoints via Depends()."""
    return request.app.state.metrics  # type: ignore[no-any-return]


def get_identity_store(request: Request) -> IdentityStore:
    """Inject the bearer-token verifier via Depends()."""
    return request.app.state.identity_store  # type: ignore[no-any-return]


def get_entitlement_store(request: Request) -> EntitlementStore:
    """Inject the subscription lookup via Depends()."""
    return request.app.state.entitlement_store  # type: ignore[no-any-return]


def get_analysis_service(request: Request) -> AnalysisService:
    return request.app.state.analysis_service  # type: ignore[no-any-return]


def get_plan_service(request: Request) -> PlanService:
    return request.app.state.plan_service  # type: ignore[no-any-return]


def get_search_service(request: Request) -> SearchService:
    return request.app.state.search_service  # type: ignore[no-any-return]

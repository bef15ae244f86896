# ─────────────────────────────────────────────────────────────────────────────
# generate-plan: preferences → JSON-constrained plan
# ─────────────────────────────────────────────────────────────────────────────
# With PLAN_CONTEXT_ENABLED the prompt also carries recent workout history
# and exercises recommended by embedding the goal. That context is advisory:
# a failure to fetch it is logged and the plan is generated without it.
# ─────────────────────────────────────────────────────────────────────────────


from datetime import UTC, datetime, timedelta
from typing import Any

import structlog

from gateway.config import Settings
from gateway.providers.protocol import ExerciseStore, GenerativeModel
from gateway.schemas import AuthContext, Equipment, PlanRequest
from gateway.services.metrics import GatewayMetrics
from gateway.services.normalizer import check_embedding, parse_json_object
from gateway.services.prompts import PlanContext, build_plan_prompt
from gateway.services.upstream import tracer, upstream_call

logger = structlog.get_logger(__name__)

# Substrings of the catalog's equipment column that each choice covers.
_EQUIPMENT_KEYWORDS: dict[Equipment, tuple[str, ...]] = {
    Equipment.dumbbells: ("dumbbell",),
    Equipment.resistance_bands: ("band",),
    Equipment.bodyweight: (),
}


def equipment_compatible(required: str | None, available: Equipment) -> bool:
    """Can an exercise needing ``required`` be done with ``available``?

    Body-weight exercises always qualify; a full gym covers everything.
    """
    if available is Equipment.full_gym:
        return True
    needed = (required or "body weight").lower()
    if "body" in needed or "none" in needed:
        return True
    return any(keyword in needed for keyword in _EQUIPMENT_KEYWORDS[available])


class PlanService:
    """Workout plan generation."""

    endpoint = "generate-plan"

    def __init__(
        self,
        model: GenerativeModel,
        store: ExerciseStore,
        settings: Settings,
        metrics: GatewayMetrics | None = None,
    ) -> None:
        self._model = model
        self._store = store
        self._settings = settings
        self._metrics = metrics

    async def generate(self, auth: AuthContext, request: PlanRequest) -> dict[str, Any]:
        with tracer.start_as_current_span("generate_plan") as span:
            span.set_attribute("goal", request.goal.value)
            span.set_attribute("days_per_week", request.days_per_week)

            context = None
            if self._settings.plan_context_enabled:
                context = await self._build_context(auth, request)

            prompt = build_plan_prompt(request, context)
            async with upstream_call("generate_plan", self._metrics):
                text = await self._model.generate(prompt, json_output=True)

            # Only "valid JSON object" is enforced; schedule contents are not checked.
            plan = parse_json_object(text)

        if self._metrics:
            self._metrics.record_request(self.endpoint)
        logger.info(
            "plan_generated",
            user_id=auth.user_id,
            goal=request.goal.value,
            days_per_week=request.days_per_week,
            with_context=context is not None,
        )
        return plan

    # ── Context (optional) ───────────────────────────────────────────────────

    async def _build_context(self, auth: AuthContext, request: PlanRequest) -> PlanContext:
        return PlanContext(
            history=await self._recent_history(auth),
            recommended_exercises=await self._recommended_exercises(auth, request),
        )

    async def _recent_history(self, auth: AuthContext) -> list[dict[str, Any]]:
        since = datetime.now(UTC) - timedelta(days=self._settings.plan_history_days)
        try:
            async with upstream_call("recent_workouts", self._metrics):
                rows = await self._store.recent_workouts(
                    auth.user_id, since, self._settings.plan_history_limit, auth.token
                )
        except Exception as e:
            logger.warning("plan_history_unavailable", error=str(e), error_type=type(e).__name__)
            return []
        return rows[: self._settings.plan_history_in_prompt]

    async def _recommended_exercises(self, auth: AuthContext, request: PlanRequest) -> list[str]:
        try:
            async with upstream_call("embed", self._metrics):
                vector = await self._model.embed(request.goal.value)
            embedding = check_embedding(vector, self._settings.embedding_dimensions)
            async with upstream_call("match_exercises", self._metrics):
                rows = await self._store.match_exercises(
                    embedding,
                    self._settings.plan_match_threshold,
                    self._settings.plan_match_count,
                    auth.token,
                )
        except Exception as e:
            logger.warning("plan_recommendations_unavailable", error=str(e), error_type=type(e).__name__)
            return []

        names = [
            row["name"]
            for row in rows
            if row.get("name") and equipment_compatible(row.get("equipment"), request.equipment)
        ]
        return names[: self._settings.plan_recommendations_in_prompt]

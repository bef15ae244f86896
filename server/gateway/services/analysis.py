# analyze-workout: images + prompt → provider JSON object.
# Entitlement is enforced before this service is reached (see gateway.auth).


from typing import Any

import structlog

from gateway.config import Settings
from gateway.providers.protocol import GenerativeModel
from gateway.schemas import AnalysisRequest, AuthContext
from gateway.services.metrics import GatewayMetrics
from gateway.services.normalizer import parse_json_object
from gateway.services.upstream import tracer, upstream_call

logger = structlog.get_logger(__name__)


class AnalysisService:
    """Vision analysis of workout images (form checks, workout-log scans)."""

    endpoint = "analyze-workout"

    def __init__(
        self,
        model: GenerativeModel,
        settings: Settings,
        metrics: GatewayMetrics | None = None,
    ) -> None:
        self._model = model
        self._settings = settings
        self._metrics = metrics

    async def analyze(self, auth: AuthContext, request: AnalysisRequest) -> dict[str, Any]:
        with tracer.start_as_current_span("analyze_workout") as span:
            span.set_attribute("image_count", len(request.images))
            images = [image.to_part() for image in request.images]

            async with upstream_call("generate_analysis", self._metrics):
                text = await self._model.generate(request.prompt, images=images)

            result = parse_json_object(text)

        if self._metrics:
            self._metrics.record_request(self.endpoint)
        logger.info(
            "analysis_completed",
            user_id=auth.user_id,
            image_count=len(images),
            model=self._model.name,
        )
        return result

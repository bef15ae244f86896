# search-exercises: query → embedding → match_exercises RPC → ordered matches.
# Exactly one embedding call and one similarity-search call per request.


import structlog

from gateway.config import Settings
from gateway.exceptions import GatewayError, UpstreamError
from gateway.providers.protocol import ExerciseStore, GenerativeModel
from gateway.schemas import AuthContext, SearchRequest, SearchResponse
from gateway.services.metrics import GatewayMetrics
from gateway.services.normalizer import check_embedding, to_exercise_matches
from gateway.services.upstream import tracer, upstream_call

logger = structlog.get_logger(__name__)


class SearchService:
    """Semantic exercise search over the vector index."""

    endpoint = "search-exercises"

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

    async def search(self, auth: AuthContext, request: SearchRequest) -> SearchResponse:
        match_count = self._settings.search_match_count

        with tracer.start_as_current_span("search_exercises"):
            async with upstream_call("embed", self._metrics):
                vector = await self._model.embed(request.query)
            embedding = check_embedding(vector, self._settings.embedding_dimensions)

            try:
                async with upstream_call("match_exercises", self._metrics):
                    rows = await self._store.match_exercises(
                        embedding,
                        self._settings.search_match_threshold,
                        match_count,
                        auth.token,
                    )
            except GatewayError:
                raise
            except Exception as e:
                raise UpstreamError(
                    "match_exercises",
                    f"{type(e).__name__}: {e}",
                    message="Database Search Failed",
                ) from e

            exercises = to_exercise_matches(rows, match_count)

        if self._metrics:
            self._metrics.record_request(self.endpoint)
        logger.info("exercise_search_completed", user_id=auth.user_id, results=len(exercises))
        return SearchResponse(exercises=exercises)

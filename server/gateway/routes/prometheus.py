# ─────────────────────────────────────────────────────────────────────────────
# Prometheus Metrics Endpoint — text exposition format
# ─────────────────────────────────────────────────────────────────────────────
# GET /metrics/prometheus → text/plain Prometheus format
# Bridges GatewayMetrics → prometheus-client gauges.
# ─────────────────────────────────────────────────────────────────────────────

from fastapi import APIRouter, Depends
from fastapi.responses import Response
from prometheus_client import CollectorRegistry, Gauge, generate_latest

from gateway.dependencies import get_metrics
from gateway.services.metrics import GatewayMetrics

router = APIRouter()

# ── Prometheus metrics (custom registry to avoid default process metrics) ─────

_registry = CollectorRegistry()

_requests_total = Gauge(
    "gateway_requests_total",
    "Successful requests per endpoint",
    ["endpoint"],
    registry=_registry,
)

_errors_total = Gauge(
    "gateway_errors_total",
    "Failed requests per error kind",
    ["kind"],
    registry=_registry,
)

_upstream_calls_total = Gauge(
    "gateway_upstream_calls_total",
    "Model provider and vector store calls per operation",
    ["operation"],
    registry=_registry,
)

_upstream_latency_ms = Gauge(
    "gateway_upstream_latency_ms",
    "Upstream call latency percentiles in milliseconds",
    ["quantile"],
    registry=_registry,
)

_error_rate = Gauge(
    "gateway_error_rate",
    "Share of requests that ended in an error envelope (0.0–1.0)",
    registry=_registry,
)


def _sync_metrics(metrics: GatewayMetrics) -> None:
    """Copy a GatewayMetrics snapshot into the Prometheus gauges.

    Gauges rather than Counters: the snapshot already holds running totals.
    """
    data = metrics.to_dict()

    for endpoint, count in data["requests_by_endpoint"].items():
        _requests_total.labels(endpoint=endpoint).set(count)
    for kind, count in data["errors_by_kind"].items():
        _errors_total.labels(kind=kind).set(count)
    for operation, count in data["upstream_by_operation"].items():
        _upstream_calls_total.labels(operation=operation).set(count)

    _upstream_latency_ms.labels(quantile="0.5").set(data["upstream_latency_p50_ms"])
    _upstream_latency_ms.labels(quantile="0.95").set(data["upstream_latency_p95_ms"])
    _error_rate.set(data["error_rate"])


@router.get("/metrics/prometheus")
async def prometheus_metrics(metrics: GatewayMetrics = Depends(get_metrics)) -> Response:
    """Prometheus text exposition format metrics endpoint."""
    _sync_metrics(metrics)
    return Response(
        content=generate_latest(_registry),
        media_type="text/plain; version=0.0.4; charset=utf-8",
    )

# ─────────────────────────────────────────────────────────────────────────────
# Upstream call instrumentation — one span + one latency sample per call
# ─────────────────────────────────────────────────────────────────────────────


import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from opentelemetry import trace

from gateway.services.metrics import GatewayMetrics

tracer = trace.get_tracer(__name__)


@asynccontextmanager
async def upstream_call(
    operation: str, metrics: GatewayMetrics | None = None
) -> AsyncIterator[trace.Span]:
    """Wrap a provider or store call. Exceptions propagate unchanged."""
    start = time.perf_counter()
    success = False
    try:
        with tracer.start_as_current_span(f"upstream.{operation}") as span:
            span.set_attribute("operation", operation)
            yield span
        success = True
    finally:
        if metrics is not None:
            metrics.record_upstream(operation, (time.perf_counter() - start) * 1000, success)

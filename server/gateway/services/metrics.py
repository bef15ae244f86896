# ─────────────────────────────────────────────────────────────────────────────
# Gateway Metrics — thread-safe request and upstream tracking
# ─────────────────────────────────────────────────────────────────────────────
# Tracks per-endpoint request counts, error counts per taxonomy kind, and
# upstream call latency percentiles. Exposed via GET /metrics.
#
# Bounded: latency history uses deque(maxlen=1000), auto-evicts oldest.
# ─────────────────────────────────────────────────────────────────────────────

from __future__ import annotations

import threading
import time
from collections import Counter, deque
from dataclasses import dataclass, field
from typing import Any


@dataclass
class GatewayMetrics:
    """Thread-safe gateway metrics. The only state shared across requests."""

    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    requests_total: int = 0
    errors_total: int = 0
    upstream_calls_total: int = 0
    upstream_failures_total: int = 0

    _requests_by_endpoint: Counter[str] = field(default_factory=Counter, repr=False)
    _errors_by_kind: Counter[str] = field(default_factory=Counter, repr=False)
    _upstream_by_operation: Counter[str] = field(default_factory=Counter, repr=False)

    # Bounded -- only keeps last 1000 latencies, oldest auto-evicted
    _upstream_latency_history: deque[float] = field(
        default_factory=lambda: deque(maxlen=1000), repr=False
    )

    _start_time: float = field(default_factory=time.time, repr=False)

    def record_request(self, endpoint: str) -> None:
        """Count a request that completed the pipeline successfully."""
        with self._lock:
            self.requests_total += 1
            self._requests_by_endpoint[endpoint] += 1

    def record_error(self, kind: str) -> None:
        """Count a failed request by error-taxonomy kind."""
        with self._lock:
            self.requests_total += 1
            self.errors_total += 1
            self._errors_by_kind[kind] += 1

    def record_upstream(self, operation: str, latency_ms: float, success: bool = True) -> None:
        """Record one model-provider or vector-store call."""
        with self._lock:
            self.upstream_calls_total += 1
            self._upstream_by_operation[operation] += 1
            self._upstream_latency_history.append(latency_ms)
            if not success:
                self.upstream_failures_total += 1

    def to_dict(self) -> dict[str, Any]:
        """Serialize metrics for the /metrics endpoint."""
        with self._lock:
            latencies = sorted(self._upstream_latency_history)
            n = len(latencies)
            return {
                "requests_total": self.requests_total,
                "errors_total": self.errors_total,
                "error_rate": round(self.errors_total / max(self.requests_total, 1), 3),
                "requests_by_endpoint": dict(self._requests_by_endpoint),
                "errors_by_kind": dict(self._errors_by_kind),
                "upstream_calls_total": self.upstream_calls_total,
                "upstream_failures_total": self.upstream_failures_total,
                "upstream_by_operation": dict(self._upstream_by_operation),
                "upstream_latency_p50_ms": round(latencies[n // 2], 1) if n else 0,
                "upstream_latency_p95_ms": round(latencies[int(n * 0.95)], 1) if n else 0,
                "upstream_latency_mean_ms": round(sum(latencies) / n, 1) if n else 0,
                "uptime_seconds": int(time.time() - self._start_time),
            }

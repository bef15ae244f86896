# ─────────────────────────────────────────────────────────────────────────────
# Health Endpoint Tests — liveness, readiness, and gateway metrics
# ─────────────────────────────────────────────────────────────────────────────
# Demonstrates: dirty-equals (declarative assertions)
# ─────────────────────────────────────────────────────────────────────────────

from dirty_equals import IsInstance, IsNonNegative, IsStr

from conftest import AUTH
from gateway.config import Settings


class TestLivenessProbe:
    """GET /health — near-zero cost, always 200."""

    def test_returns_200(self, client):
        response = client.get("/health")
        assert response.status_code == 200

    def test_minimal_body(self, client):
        assert client.get("/health").json() == {"status": "ok"}

    def test_no_auth_required(self, client, identity_store):
        client.get("/health")
        identity_store.get_user_id.assert_not_awaited()

    def test_request_id_header(self, client):
        response = client.get("/health")
        assert response.headers["x-request-id"] == IsStr(regex=r"[0-9a-f-]{8}")
        assert float(response.headers["x-response-time-ms"]) >= 0


class TestReadinessProbe:
    """GET /health/ready — configuration complete enough to serve?"""

    def test_ready_when_configured(self, client):
        response = client.get("/health/ready")
        assert response.status_code == 200
        assert response.json() == {
            "status": "ready",
            "store_configured": True,
            "model_configured": True,
        }

    def test_503_without_model_key(self, client, app):
        app.state.settings = Settings(supabase_url="https://x.supabase.co", supabase_anon_key="k", gemini_api_key="")
        response = client.get("/health/ready")
        assert response.status_code == 503
        assert response.json() == {
            "status": "not_ready",
            "store_configured": True,
            "model_configured": False,
        }

    def test_503_without_store(self, client, app):
        app.state.settings = Settings(gemini_api_key="k", supabase_url="")
        data = client.get("/health/ready").json()
        assert data["status"] == "not_ready"
        assert data["store_configured"] is False


class TestGatewayMetricsEndpoint:
    """GET /metrics — JSON counters."""

    def test_shape(self, client):
        data = client.get("/metrics").json()
        assert data == {
            "requests_total": IsNonNegative,
            "errors_total": IsNonNegative,
            "error_rate": IsNonNegative,
            "requests_by_endpoint": IsInstance(dict),
            "errors_by_kind": IsInstance(dict),
            "upstream_calls_total": IsNonNegative,
            "upstream_failures_total": IsNonNegative,
            "upstream_by_operation": IsInstance(dict),
            "upstream_latency_p50_ms": IsNonNegative,
            "upstream_latency_p95_ms": IsNonNegative,
            "upstream_latency_mean_ms": IsNonNegative,
            "uptime_seconds": IsNonNegative,
        }

    def test_counts_requests_and_errors(self, client):
        client.post("/search-exercises", json={"query": "leg day"}, headers=AUTH)
        client.post("/search-exercises", json={"query": "leg day"})
        data = client.get("/metrics").json()
        assert data["requests_total"] == 2
        assert data["errors_total"] == 1
        assert data["error_rate"] == 0.5
        assert data["errors_by_kind"] == {"Unauthorized": 1}


class TestPrometheusEndpoint:
    """GET /metrics/prometheus — text exposition format."""

    def test_content_type(self, client):
        response = client.get("/metrics/prometheus")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")

    def test_exports_gateway_series(self, client):
        client.post("/search-exercises", json={"query": "leg day"}, headers=AUTH)
        body = client.get("/metrics/prometheus").text
        assert 'gateway_requests_total{endpoint="search-exercises"}' in body
        assert 'gateway_upstream_calls_total{operation="embed"}' in body
        assert 'gateway_upstream_latency_ms{quantile="0.95"}' in body
        assert "gateway_error_rate" in body


class TestRequestIds:
    """X-Request-ID handling in RequestContextMiddleware."""

    def test_inbound_id_reused(self, client):
        response = client.get("/health", headers={"X-Request-ID": "edge-0123456789"})
        assert response.headers["x-request-id"] == "edge-0123456789"

    def test_malformed_inbound_id_replaced(self, client):
        response = client.get("/health", headers={"X-Request-ID": "bad id; drop table"})
        assert response.headers["x-request-id"] == IsStr(regex=r"[0-9a-f]{8}")

    def test_error_responses_carry_id(self, client):
        response = client.post("/generate-plan", json={})
        assert response.status_code == 401
        assert "x-request-id" in response.headers

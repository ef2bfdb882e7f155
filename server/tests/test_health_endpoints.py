# ─────────────────────────────────────────────────────────────────────────────
# Health Endpoint Tests — liveness, readiness, diagnostics, presets
# ─────────────────────────────────────────────────────────────────────────────
# Demonstrates: dirty-equals (declarative assertions)
# ─────────────────────────────────────────────────────────────────────────────

from dirty_equals import IsInstance, IsNonNegative, IsStr
from fastapi.testclient import TestClient


class TestLivenessProbe:
    """GET /health: near-zero cost, always 200."""

    def test_minimal_body(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_works_without_provider_token(self, make_app):
        client = TestClient(make_app(replicate_api_token=""))
        assert client.get("/health").status_code == 200


class TestReadinessProbe:
    """GET /health/ready: provider token configured + counter store reachable."""

    def test_returns_200_when_ready(self, client):
        response = client.get("/health/ready")
        assert response.status_code == 200
        assert response.json() == {
            "status": "ready",
            "provider_configured": True,
            "rate_limit_enabled": False,
            "rate_limit_store_ok": True,
        }

    def test_returns_503_without_token(self, make_app):
        client = TestClient(make_app(replicate_api_token=""))
        response = client.get("/health/ready")
        assert response.status_code == 503
        assert response.json()["status"] == "not_ready"
        assert response.json()["provider_configured"] is False

    def test_with_memory_store(self, make_app):
        client = TestClient(make_app(rate_limit_storage_uri="memory://"))
        data = client.get("/health/ready").json()
        assert data == {
            "status": IsStr(regex=r"ready|not_ready"),
            "provider_configured": True,
            "rate_limit_enabled": True,
            "rate_limit_store_ok": IsInstance(bool),
        }


class TestDetailedHealth:
    def test_returns_configuration_summary(self, client):
        response = client.get("/health/detailed")
        assert response.status_code == 200
        assert response.json() == {
            "status": "healthy",
            "model": IsStr,
            "provider_configured": True,
            "rate_limit_enabled": False,
            "rate_limit": None,
            "generation_timeout_seconds": 2.0,
            "poll_interval_seconds": 0.01,
            "requests_total": 0,
            "uptime_seconds": IsNonNegative,
        }

    def test_never_exposes_token(self, client):
        assert "r8_test_token" not in client.get("/health/detailed").text


class TestMetrics:
    def test_json_metrics_shape(self, client):
        data = client.get("/metrics").json()
        assert data == {
            "requests_total": 0,
            "successes": 0,
            "errors_total": 0,
            "errors_by_type": {},
            "timeouts": 0,
            "rate_limited": 0,
            "success_rate": IsNonNegative,
            "latency_p50_ms": 0,
            "latency_p95_ms": 0,
            "latency_mean_ms": 0,
            "uptime_seconds": IsNonNegative,
        }

    def test_prometheus_exposition(self, client):
        response = client.get("/metrics/prometheus")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        body = response.text
        assert "roomdesigner_requests" in body
        assert 'roomdesigner_component_up{component="provider"} 1.0' in body
        assert 'roomdesigner_generation_latency_ms{quantile="0.5"}' in body


class TestPresets:
    def test_lists_styles_and_rooms(self, client):
        data = client.get("/presets").json()
        assert len(data["styles"]) == 12
        assert len(data["rooms"]) == 8
        assert data["styles"][0] == {"id": IsStr, "name": IsStr}
        assert {"id": "woonkamer", "name": "Woonkamer", "nameEN": "Living Room"} in data["rooms"]

"""
Integration tests for status endpoints.

WHAT: Test /api/v1/llm/status and /api/v1/health endpoints
WHY: Ensure HTTP layer correctly integrates with provider, DB and app.state
HOW: TestClient over create_app(); LM Studio HTTP mocked with respx
"""

import httpx
import pytest
import respx

from aabarnam.core.config import settings


@pytest.mark.integration
class TestLLMStatusEndpoint:
    """Test /api/v1/llm/status endpoint."""

    @respx.mock
    def test_llm_status_available(self, client, monkeypatch):
        """LM Studio answering /models reports available with its model list."""
        monkeypatch.setattr(settings, "LLM_PROVIDER", "lm_studio")
        monkeypatch.setattr(settings, "LM_STUDIO_BASE_URL", "http://localhost:1234/v1")
        respx.get("http://localhost:1234/v1/models").mock(
            return_value=httpx.Response(200, json={"data": [{"id": "model-1"}, {"id": "model-2"}]})
        )

        response = client.get("/api/v1/llm/status")

        assert response.status_code == 200
        data = response.json()
        assert data["provider"] == "lm_studio"
        assert data["llm"]["available"] is True
        assert data["llm"]["models"] == ["model-1", "model-2"]
        assert data["database"]["available"] is True

    def test_llm_status_disabled_provider(self, client):
        """Disabled OpenRouter is reported, not raised."""
        response = client.get("/api/v1/llm/status")

        assert response.status_code == 200
        llm = response.json()["llm"]
        assert llm["available"] is False
        assert "disabled" in llm["error"].lower()


@pytest.mark.integration
class TestHealthEndpoint:

    def test_health_degraded_without_llm(self, client):
        response = client.get("/api/v1/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "degraded"
        assert data["components"]["database"]["available"] is True
        assert data["components"]["llm"]["available"] is False
        assert data["components"]["negotiations"]["active_sessions"] == 0
        assert data["components"]["rate_sync"]["last_success"] is None

    @respx.mock
    def test_health_reports_last_sync(self, client):
        respx.get(url__startswith=settings.SPOT_PRICE_URL).mock(return_value=httpx.Response(503))
        respx.get(settings.FX_RATE_URL).mock(return_value=httpx.Response(503))
        client.post("/api/v1/rates/sync")

        rate_sync = client.get("/api/v1/health").json()["components"]["rate_sync"]

        assert rate_sync["last_success"] is True
        assert rate_sync["last_degraded"] is True
        assert rate_sync["last_synced_at"] is not None

    def test_root(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["status"] == "running"

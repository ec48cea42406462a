"""
Tests for health check endpoints.

Verifies:
- /health returns 200 with correct status and version fields
- /metrics exposes Prometheus text
"""

from fastapi.testclient import TestClient
from main import app


client = TestClient(app)


def test_health_returns_200():
    """Basic health check should always return 200."""
    response = client.get("/health")
    assert response.status_code == 200


def test_health_response_body():
    """Health check should return status and version fields."""
    response = client.get("/health")
    data = response.json()
    assert data["status"] == "healthy"
    assert isinstance(data["version"], str)


def test_metrics_endpoint_exposes_prometheus_text():
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "text/plain" in response.headers["content-type"]
    assert "http_requests_total" in response.text

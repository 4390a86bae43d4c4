"""Tests for health check endpoints."""

from fastapi.testclient import TestClient

from querylog import __version__
from querylog.query_history import QueryHistory
from querylog.server.app import app
from querylog.server.dependencies import get_query_history
from querylog.storage import InMemoryBackend


def test_health_endpoint():
    """Test the health check endpoint returns proper status."""
    history = QueryHistory(InMemoryBackend())
    app.dependency_overrides[get_query_history] = lambda: history
    try:
        with TestClient(app) as client:
            response = client.get("/api/v1/health")
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 200

    data = response.json()
    assert data["status"] == "healthy"
    assert data["version"] == __version__
    assert isinstance(data["uptime"], (int, float))
    assert data["uptime"] >= 0
    assert data["storage"]["type"] == "memory"
    assert "X-Process-Time" in response.headers


def test_root_endpoint():
    """Test the root endpoint returns server information."""
    with TestClient(app) as client:
        response = client.get("/")

    assert response.status_code == 200

    data = response.json()
    assert data["name"] == "querylog Server"
    assert data["version"] == __version__
    assert data["docs_url"] == "/docs"
    assert data["health_url"] == "/api/v1/health"

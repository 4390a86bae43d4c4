"""Tests for the query history API endpoints."""

import pytest
from fastapi.testclient import TestClient

from querylog.query_history import QueryHistory
from querylog.server.app import app
from querylog.server.dependencies import get_query_history
from querylog.storage import InMemoryBackend, StorageConfig


@pytest.fixture
def backend():
    return InMemoryBackend(StorageConfig(type="memory"))


@pytest.fixture
def client(backend, timestamps):
    """A test client whose routes use a fresh in-memory history."""
    history = QueryHistory(backend, timestamp_factory=timestamps)
    app.dependency_overrides[get_query_history] = lambda: history
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def append(client, username, query_string, metrics):
    response = client.post(f"/api/v1/users/{username}/queries", json={"query_string": query_string, "output_metrics": metrics})
    assert response.status_code == 201, response.text
    return response.json()


class TestUserEndpoints:
    """Tests for the find-or-create user endpoint."""

    def test_find_or_create_is_idempotent(self, client, backend):
        first = client.post("/api/v1/users/alice")
        second = client.post("/api/v1/users/alice")

        assert first.status_code == second.status_code == 200
        assert first.json() == {"success": True, "username": "alice", "query_count": 0}
        assert backend.get_info()["users"] == 1


class TestQueryEndpoints:
    """Tests for appending, listing and fetching queries."""

    def test_append_creates_user_and_entry(self, client):
        data = append(client, "alice", "SELECT 1", "metricsX")

        assert data["success"] is True
        assert data["timestamp"] == "t1"

        listing = client.get("/api/v1/users/alice/queries").json()
        assert [(q["query_string"], q["counter"], q["timestamp"]) for q in listing["queries"]] == [("SELECT 1", 1, "t1")]

    def test_same_query_twice_lists_once(self, client):
        append(client, "alice", "SELECT 1", "m1")
        append(client, "alice", "SELECT 1", "m2")

        listing = client.get("/api/v1/users/alice/queries").json()

        assert len(listing["queries"]) == 1
        assert listing["queries"][0]["counter"] == 2
        assert listing["queries"][0]["timestamp"] == "t2"

    def test_list_unknown_user(self, client):
        response = client.get("/api/v1/users/nobody/queries")

        assert response.status_code == 200
        assert response.json() == {"success": True, "queries": [], "message": "No results found"}

    def test_append_missing_query_string(self, client):
        response = client.post("/api/v1/users/alice/queries", json={"output_metrics": "m"})

        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "INVALID_PARAMS"
        assert "query_string" in response.json()["detail"]["detail"]

    def test_get_query_detail(self, client):
        first = append(client, "alice", "SELECT 1", {"rows": 1})
        second = append(client, "alice", "SELECT 1", {"rows": 2})
        query_id = client.get("/api/v1/users/alice/queries").json()["queries"][0]["id"]

        query = client.get(f"/api/v1/users/alice/queries/{query_id}").json()["query"]

        assert query["id"] == query_id
        assert query["counter"] == 2
        assert query["instance_ids"] == [first["instance_id"], second["instance_id"]]
        assert query["output_metrics"] == [{"rows": 1}, {"rows": 2}]
        assert query["timestamps"] == ["t1", "t2"]

    def test_get_unknown_query(self, client):
        append(client, "alice", "SELECT 1", "m")

        response = client.get("/api/v1/users/alice/queries/unknown")

        assert response.status_code == 200
        assert response.json()["query"] is None


class TestInstanceEndpoints:
    """Tests for instance detail and deletion."""

    def test_get_instance(self, client):
        created = append(client, "alice", "SELECT 1", {"rows": 7})
        query_id = client.get("/api/v1/users/alice/queries").json()["queries"][0]["id"]

        response = client.get(f"/api/v1/users/alice/queries/{query_id}/instances/{created['instance_id']}")

        assert response.json()["instance"] == {"query_string": "SELECT 1", "output_metrics": {"rows": 7}, "timestamp": "t1"}

    def test_get_instance_of_unknown_query_is_empty(self, client):
        created = append(client, "alice", "SELECT 1", "m")

        response = client.get(f"/api/v1/users/alice/queries/nope/instances/{created['instance_id']}")

        assert response.status_code == 200
        assert response.json()["instance"] == {}

    def test_delete_instance(self, client):
        ids = [append(client, "alice", "SELECT 1", f"m{i}")["instance_id"] for i in range(3)]
        query_id = client.get("/api/v1/users/alice/queries").json()["queries"][0]["id"]

        response = client.delete(f"/api/v1/users/alice/queries/{query_id}/instances/{ids[1]}")

        assert response.json() == {"success": True, "deleted": True}
        query = client.get(f"/api/v1/users/alice/queries/{query_id}").json()["query"]
        assert query["instance_ids"] == [ids[0], ids[2]]
        assert query["output_metrics"] == ["m0", "m2"]

    def test_delete_unknown_instance_is_noop(self, client):
        append(client, "alice", "SELECT 1", "m")
        query_id = client.get("/api/v1/users/alice/queries").json()["queries"][0]["id"]

        response = client.delete(f"/api/v1/users/alice/queries/{query_id}/instances/missing")

        assert response.status_code == 200
        assert response.json()["deleted"] is False

    def test_delete_for_unknown_user(self, client):
        response = client.delete("/api/v1/users/ghost/queries/q/instances/i")

        assert response.status_code == 404
        assert response.json()["detail"]["error"] == "USER_NOT_FOUND"


class TestMetricsEndpoints:
    """Tests for the raw metrics endpoints."""

    def test_record_and_delete(self, client, backend):
        created = client.post("/api/v1/metrics", json={"output_metrics": {"rows": 3}})
        assert created.status_code == 201
        metrics_id = created.json()["metrics_id"]
        assert backend.has_metrics(metrics_id)

        response = client.delete(f"/api/v1/metrics/{metrics_id}")

        assert response.status_code == 200
        assert not backend.has_metrics(metrics_id)

    def test_delete_unknown(self, client):
        response = client.delete("/api/v1/metrics/missing")

        assert response.status_code == 503
        assert response.json()["detail"]["error"] == "PERSISTENCE_ERROR"

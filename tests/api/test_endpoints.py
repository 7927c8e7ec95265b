"""
API endpoint tests
"""

import pytest
from fastapi.testclient import TestClient
from api.main import app
from sync.orchestrator import SyncOrchestrator


@pytest.fixture
def client(orchestrator):
    """Create test client with an in-memory orchestrator"""
    app.state.orchestrator = orchestrator

    with TestClient(app) as test_client:
        yield test_client

    app.state.orchestrator = None


def test_root(client):
    response = client.get("/")

    assert response.status_code == 200
    assert response.json()["health"] == "/health"


def test_health_endpoint(client):
    response = client.get("/health")

    assert response.status_code == 200
    data = response.json()

    assert data["status"] == "healthy"
    assert data["storage_connected"] is True
    assert data["total_tables"] == 9
    assert data["failed_tables"] == 0
    assert data["request_id"] == response.headers["X-Request-ID"]
    assert "X-API-Latency-ms" in response.headers


def test_health_degraded_after_failed_sync(client, sources):
    sources["xivapi"].fail("/Mount")
    sources["ffxivcollect"].fail("/mounts")

    client.post("/sync/mounts")
    data = client.get("/health").json()

    assert data["failed_tables"] == 1
    assert data["status"] == "degraded"


def test_request_id_is_propagated(client):
    response = client.get("/sync/status", headers={"X-Request-ID": "req-123"})

    assert response.headers["X-Request-ID"] == "req-123"
    assert response.json()["request_id"] == "req-123"


def test_sync_status(client):
    response = client.get("/sync/status")

    assert response.status_code == 200
    data = response.json()

    assert data["sync_in_progress"] is False
    assert data["tables"]["mounts"]["needs_sync"] is True
    assert data["tables"]["mounts"]["state"] == "idle"
    assert data["tables"]["facewear"]["sources"] == ["ffxivcollect"]


def test_sync_table(client, local_store):
    response = client.post("/sync/mounts")

    assert response.status_code == 200
    data = response.json()

    assert data["success"] is True
    assert data["inserted"] == 3


def test_sync_table_not_due_is_skipped(client):
    client.post("/sync/mounts")

    skipped = client.post("/sync/mounts").json()
    forced = client.post("/sync/mounts?force=true").json()

    assert skipped["skipped"] is True
    assert forced["skipped"] is False
    assert forced["updated"] == 3


def test_sync_unknown_table(client):
    response = client.post("/sync/nonexistent")

    assert response.status_code == 404
    assert response.json()["detail"] == "Unknown schema: nonexistent"


def test_sync_all(client):
    response = client.post("/sync/all")

    assert response.status_code == 200
    data = response.json()

    assert data["success"] is True
    assert data["total_inserted"] == 3
    assert set(data["tables"]) == {
        "achievements", "titles", "mounts", "minions", "orchestrions",
        "emotes", "bardings", "hairstyles", "facewear",
    }


def test_history_and_clear(client):
    client.post("/sync/mounts")
    client.post("/sync/titles")

    data = client.get("/sync/history?limit=1").json()

    assert data["total"] == 2
    assert len(data["runs"]) == 1
    assert data["runs"][0]["table"] == "titles"

    assert client.delete("/sync/history").status_code == 200
    assert client.get("/sync/history").json()["runs"] == []


def test_toggle_auto_sync(client, orchestrator):
    response = client.put("/sync/mounts/auto", json={"enabled": True})

    assert response.status_code == 200
    assert orchestrator.sync_config["mounts"].enabled is True
    assert client.get("/sync/status").json()["tables"]["mounts"]["scheduled"] is True

    client.put("/sync/mounts/auto", json={"enabled": False})
    assert orchestrator.scheduler.is_scheduled("mounts") is False


def test_toggle_auto_sync_unknown_table(client):
    response = client.put("/sync/nonexistent/auto", json={"enabled": True})

    assert response.status_code == 404


def test_update_interval(client, orchestrator):
    response = client.put("/sync/mounts/interval", json={"interval_seconds": 3600})

    assert response.status_code == 200
    assert orchestrator.sync_config["mounts"].interval_seconds == 3600


def test_update_interval_rejects_non_positive(client):
    response = client.put("/sync/mounts/interval", json={"interval_seconds": 0})

    assert response.status_code == 422


def test_reset_state(client, orchestrator):
    client.post("/sync/mounts")

    response = client.post("/sync/reset")

    assert response.status_code == 200
    assert orchestrator.needs_sync("mounts") is True


def test_state_changes_fail_when_state_cannot_be_saved(registry, sources, state_failing_store, clock):
    orchestrator = SyncOrchestrator(
        registry=registry, sources=sources, backend=state_failing_store, clock=clock
    )
    app.state.orchestrator = orchestrator

    with TestClient(app) as client:
        toggled = client.put("/sync/mounts/auto", json={"enabled": True})
        interval = client.put("/sync/mounts/interval", json={"interval_seconds": 3600})
        reset = client.post("/sync/reset")

    app.state.orchestrator = None

    assert toggled.status_code == 503
    assert toggled.json()["detail"] == "Failed to write sync state"
    assert interval.status_code == 503
    assert reset.status_code == 503
    assert orchestrator.sync_config["mounts"].enabled is False
    assert orchestrator.sync_config["mounts"].interval_seconds != 3600
    assert orchestrator.scheduler.is_scheduled("mounts") is False

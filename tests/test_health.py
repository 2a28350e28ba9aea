"""
Tests: health, collection and cache endpoints
"""
import random

import pytest
from fastapi.testclient import TestClient

from app.collector import (
    CancellationToken,
    CollectionSession,
    UniqueRandomCollector,
    get_collection_session,
)
from app.main import app
from tests.conftest import FakeCatalogClient


@pytest.fixture
def client(cache):
    collector = UniqueRandomCollector(cache, FakeCatalogClient(), rng=random.Random(4))
    session = CollectionSession(collector, cache, target_count=5)
    app.dependency_overrides[get_collection_session] = lambda: session
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health_endpoint_returns_ok_status(client):
    """Test that /health returns status: ok"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_collection_starts_empty(client):
    data = client.get("/collection").json()
    assert data == {
        "records": [],
        "loading": False,
        "error": None,
        "progress": {"current": 0, "total": 5},
    }


def test_refetch_returns_collected_records(client):
    response = client.post("/collection/refetch")
    assert response.status_code == 200

    data = response.json()
    assert len(data["records"]) == 5
    assert data["progress"] == {"current": 5, "total": 5}
    assert data["loading"] is False
    record = data["records"][0]
    assert "grass" in record["categories"]
    assert record["numeric_attributes"]["hp"] == 45

    # State endpoint reflects the same run
    assert client.get("/collection").json()["records"] == data["records"]


def test_fetch_more_appends(client):
    client.post("/collection/refetch")
    response = client.post("/collection/more?count=2")
    assert response.status_code == 200
    added = response.json()["added"]

    assert len(client.get("/collection").json()["records"]) == 5 + added


def test_fetch_more_validates_count(client):
    response = client.post("/collection/more?count=0")
    assert response.status_code == 422


def test_cancel_without_run(client):
    assert client.post("/collection/cancel").json() == {"cancelled": False}


def test_cache_endpoints(client):
    client.post("/collection/refetch")

    stats = client.get("/cache/stats").json()
    assert stats["memory_entries"] >= 5
    assert 0 <= stats["approximate_hit_rate"] <= 100

    assert client.post("/cache/clean-expired").json() == {"removed": 0}
    removed = client.delete("/cache").json()["removed"]
    assert removed == stats["memory_entries"] + stats["durable_entries"]
    assert client.get("/cache/stats").json()["memory_entries"] == 0


def test_fetch_more_conflicts_with_running_refetch(cache):
    collector = UniqueRandomCollector(cache, FakeCatalogClient(), rng=random.Random(4))
    session = CollectionSession(collector, cache, target_count=5)
    session._token = CancellationToken()  # a run is live
    app.dependency_overrides[get_collection_session] = lambda: session
    try:
        response = TestClient(app).post("/collection/more?count=2")
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 409
    assert session.state.error is None

# tests/test_health.py
from fastapi.testclient import TestClient

from collection_router.main import app

client = TestClient(app)


def test_health_check():
    response = client.get("/health/")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert "app" in data
    assert "version" in data
    assert "environment" in data

    graph = data["graph"]
    assert graph["version"] >= 0
    assert graph["invalidation_mode"] in ("time", "content")
    assert {"hits", "misses", "path_entries"} <= set(graph["cache"])

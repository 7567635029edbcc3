from __future__ import annotations

from fastapi.testclient import TestClient


def test_health_without_backing_services(client: TestClient) -> None:
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {
        "status": "ok",
        "checks": {"database": "not_configured", "redis": "not_configured"},
    }


def test_ready_without_database(client: TestClient) -> None:
    assert client.get("/ready").status_code == 200


def test_unknown_route_uses_error_envelope(client: TestClient) -> None:
    resp = client.get("/api/nope")
    assert resp.status_code == 404
    assert set(resp.json()) == {"error"}

"""Tests for Prometheus metrics.

prometheus-client keeps one global registry and counters only go up, so
every assertion is on the DELTA around the action under test.
"""

from __future__ import annotations

from fastapi.testclient import TestClient
from prometheus_client import REGISTRY

from practice_orgs.repos.bundle import RepoBundle
from tests.conftest import add_member, make_org, make_user, session_headers


def _get_sample(name: str, labels: dict | None = None) -> float:
    value = REGISTRY.get_sample_value(name, labels=labels or {})
    return value if value is not None else 0.0


def test_request_counter_increments(client: TestClient) -> None:
    labels = {"method": "GET", "endpoint": "/health", "status_code": "200"}
    before = _get_sample("http_requests_total", labels)
    client.get("/health")
    assert _get_sample("http_requests_total", labels) - before >= 1


def test_endpoint_label_uses_route_template(client: TestClient, repos: RepoBundle) -> None:
    owner = make_user(repos, paid=True)
    org = make_org(repos, owner)
    labels = {"method": "GET", "endpoint": "/api/organizations/{slug}", "status_code": "200"}

    before = _get_sample("http_requests_total", labels)
    client.get(f"/api/organizations/{org.slug}", headers=session_headers(owner))
    assert _get_sample("http_requests_total", labels) - before == 1


def test_request_duration_histogram_observes(client: TestClient) -> None:
    labels = {"method": "GET", "endpoint": "/health"}
    before = _get_sample("http_request_duration_seconds_count", labels)
    client.get("/health")
    assert _get_sample("http_request_duration_seconds_count", labels) - before >= 1


def test_membership_transition_counter(client: TestClient, repos: RepoBundle) -> None:
    owner = make_user(repos, paid=True)
    org = make_org(repos, owner)
    target = add_member(repos, org, make_user(repos), status="INVITED")
    labels = {"action": "approve"}

    before = _get_sample("membership_transitions_total", labels)
    client.patch(
        f"/api/organizations/{org.slug}/members/{target.id}",
        json={"action": "approve"},
        headers=session_headers(owner),
    )
    assert _get_sample("membership_transitions_total", labels) - before == 1


def test_metrics_endpoint_returns_prometheus_format(client: TestClient) -> None:
    client.get("/health")
    resp = client.get("/metrics")
    assert resp.status_code == 200
    assert "http_requests_total" in resp.text
    assert "organizations_created_total" in resp.text

"""Tests for the request context middleware.

Verifies that every response gets:
- An X-Request-ID header (generated or echoed from the request)
- A completion log line carrying the request context
"""

from __future__ import annotations

import logging
import uuid

import pytest
from fastapi.testclient import TestClient

from practice_orgs.repos.bundle import RepoBundle
from tests.conftest import make_org, make_user, session_headers


def test_request_id_generated_when_not_provided(client: TestClient) -> None:
    resp = client.get("/health")
    req_id = resp.headers.get("x-request-id")
    assert req_id is not None
    uuid.UUID(req_id)  # raises ValueError if invalid


def test_request_id_echoed_when_provided(client: TestClient) -> None:
    custom_id = "my-custom-request-id-123"
    resp = client.get("/health", headers={"X-Request-ID": custom_id})
    assert resp.headers.get("x-request-id") == custom_id


def test_request_id_present_on_error_responses(client: TestClient) -> None:
    resp = client.get("/api/me")  # no session cookie -> 401
    assert resp.status_code == 401
    assert resp.headers.get("x-request-id") is not None


def test_completion_log_carries_user_id(
    client: TestClient, repos: RepoBundle, caplog: pytest.LogCaptureFixture
) -> None:
    user = make_user(repos)
    with caplog.at_level(logging.INFO, logger="practice_orgs.middleware.request_context"):
        client.get("/api/me", headers=session_headers(user))

    records = [
        r for r in caplog.records if r.name == "practice_orgs.middleware.request_context"
    ]
    assert records
    assert records[-1].user_id == str(user.id)  # type: ignore[attr-defined]
    assert records[-1].status_code == 200  # type: ignore[attr-defined]


def test_completion_log_carries_org_slug(
    client: TestClient, repos: RepoBundle, caplog: pytest.LogCaptureFixture
) -> None:
    owner = make_user(repos, paid=True)
    org = make_org(repos, owner, name="Acme")
    with caplog.at_level(logging.INFO, logger="practice_orgs.middleware.request_context"):
        client.get(f"/api/organizations/{org.slug}", headers=session_headers(owner))

    summary = [
        r for r in caplog.records if r.name == "practice_orgs.middleware.request_context"
    ][-1]
    assert summary.org_slug == "acme"  # type: ignore[attr-defined]

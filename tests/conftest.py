from __future__ import annotations

import asyncio
import sys
from collections.abc import Iterator
from pathlib import Path
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

# Ensure repo root is on sys.path so `import practice_orgs` works under pytest.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from practice_orgs.api.dependencies import get_repos  # noqa: E402
from practice_orgs.api.ratelimit import rate_limiter  # noqa: E402
from practice_orgs.main import app  # noqa: E402
from practice_orgs.models.organization import Membership, Organization  # noqa: E402
from practice_orgs.models.user import User  # noqa: E402
from practice_orgs.repos.bundle import RepoBundle, in_memory_bundle  # noqa: E402
from practice_orgs.services import token_service  # noqa: E402
from practice_orgs.services.organization_service import (  # noqa: E402
    OrganizationDirectory,
)


@pytest.fixture(autouse=True)
def reset_rate_limiter() -> None:
    """Clear rate limit buckets between tests so limits don't bleed."""
    if hasattr(rate_limiter, "_buckets"):
        rate_limiter._buckets.clear()  # type: ignore[union-attr]


@pytest.fixture
def repos() -> RepoBundle:
    """A fresh in-memory repository bundle for each test."""
    return in_memory_bundle()


@pytest.fixture
def client(repos: RepoBundle) -> Iterator[TestClient]:
    app.dependency_overrides[get_repos] = lambda: repos
    yield TestClient(app)
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Data helpers
# ---------------------------------------------------------------------------


def make_user(
    repos: RepoBundle,
    name: str = "Test User",
    email: str | None = None,
    *,
    paid: bool = False,
) -> User:
    """Persist a user with a TRIAL subscription (ACTIVE when ``paid``)."""
    user = User.new(
        email=email or f"{uuid4().hex[:10]}@example.com",
        name=name,
        password_hash="not-a-real-hash",
    )
    asyncio.run(repos.users.add(user))
    asyncio.run(repos.subscriptions.ensure_trial(user.id))
    if paid:
        asyncio.run(repos.subscriptions.set_status(user.id, "ACTIVE", "pro"))
    return user


def make_org(repos: RepoBundle, owner: User, name: str = "Clinica Teste") -> Organization:
    """Create an org through the directory so the owner membership exists."""
    directory = OrganizationDirectory(repos.orgs, repos.memberships, repos.subscriptions)
    return asyncio.run(directory.create_organization(owner.id, name))


def add_member(
    repos: RepoBundle,
    org: Organization,
    user: User,
    role: str = "DENTIST",
    status: str = "ACTIVE",
) -> Membership:
    m = Membership.new(org_id=org.id, user_id=user.id, role=role, status=status)
    asyncio.run(repos.memberships.add(m))
    return m


def session_headers(user: User) -> dict[str, str]:
    token = token_service.create_session_token(sub=str(user.id))
    return {"Cookie": f"{token_service.SESSION_COOKIE}={token}"}

from __future__ import annotations

import asyncio
from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest

from practice_orgs.models.organization import Organization
from practice_orgs.models.user import User
from practice_orgs.repos.bundle import RepoBundle
from practice_orgs.services import organization_service
from practice_orgs.services.errors import NotFoundError, PlanLimitError, ValidationError
from practice_orgs.services.organization_service import (
    INVITE_CODE_ALPHABET,
    INVITE_CODE_LENGTH,
    OrganizationDirectory,
    generate_invite_code,
)
from tests.conftest import make_org, make_user


class _Clock:
    """Settable clock for expiry tests."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


def _directory(repos: RepoBundle, clock=None, ttl=timedelta(hours=24)) -> OrganizationDirectory:
    kwargs = {"invite_ttl": ttl}
    if clock is not None:
        kwargs["clock"] = clock
    return OrganizationDirectory(
        repos.orgs, repos.memberships, repos.subscriptions, **kwargs
    )


# ---- invite code generation ----


def test_generate_invite_code_uses_unambiguous_alphabet() -> None:
    for _ in range(200):
        code = generate_invite_code()
        assert len(code) == INVITE_CODE_LENGTH
        assert set(code) <= set(INVITE_CODE_ALPHABET)
        assert not set(code) & set("IO01")


# ---- plan gate ----


def test_ensure_can_create_rejects_trial_subscription(repos: RepoBundle) -> None:
    user = make_user(repos)
    with pytest.raises(PlanLimitError) as exc:
        asyncio.run(_directory(repos).ensure_can_create(user.id))
    assert "upgrade" in exc.value.message


def test_ensure_can_create_rejects_missing_subscription(repos: RepoBundle) -> None:
    user = User.new(email="nosub@example.com", name="No Sub", password_hash="x")
    asyncio.run(repos.users.add(user))
    with pytest.raises(PlanLimitError):
        asyncio.run(_directory(repos).ensure_can_create(user.id))


def test_ensure_can_create_allows_paid_user_without_org(repos: RepoBundle) -> None:
    user = make_user(repos, paid=True)
    asyncio.run(_directory(repos).ensure_can_create(user.id))


def test_ensure_can_create_rejects_second_owned_org(repos: RepoBundle) -> None:
    user = make_user(repos, paid=True)
    make_org(repos, user)
    with pytest.raises(PlanLimitError, match="apenas 1 organização"):
        asyncio.run(_directory(repos).ensure_can_create(user.id))


def test_ensure_can_create_ignores_non_owner_memberships(repos: RepoBundle) -> None:
    owner = make_user(repos, paid=True)
    org = make_org(repos, owner)
    user = make_user(repos, paid=True)
    asyncio.run(
        repos.memberships.upsert(org.id, user.id, role="ADMIN", status="ACTIVE")
    )
    asyncio.run(_directory(repos).ensure_can_create(user.id))


# ---- creation ----


def test_create_organization_makes_creator_active_owner(repos: RepoBundle) -> None:
    user = make_user(repos, paid=True)
    org = asyncio.run(_directory(repos).create_organization(user.id, "  Acme  "))

    assert org.name == "Acme"
    assert org.slug == "acme"
    assert org.status == "TRIAL"
    assert org.invite_code is None

    membership = asyncio.run(repos.memberships.get(org.id, user.id))
    assert membership is not None
    assert membership.role == "OWNER"
    assert membership.status == "ACTIVE"


def test_create_organization_suffixes_taken_slug(repos: RepoBundle) -> None:
    first = make_org(repos, make_user(repos, paid=True), name="Acme")
    second = make_org(repos, make_user(repos, paid=True), name="acme")
    assert first.slug == "acme"
    assert second.slug == "acme-1"


@pytest.mark.parametrize("name", ["", " ", "A", " B "])
def test_create_organization_rejects_short_name(repos: RepoBundle, name: str) -> None:
    user = make_user(repos, paid=True)
    with pytest.raises(ValidationError, match="pelo menos 2 caracteres"):
        asyncio.run(_directory(repos).create_organization(user.id, name))


# ---- invite codes ----


def test_invite_code_generated_on_first_request(repos: RepoBundle) -> None:
    clock = _Clock(datetime(2026, 3, 1, 12, 0, tzinfo=UTC))
    org = make_org(repos, make_user(repos, paid=True))

    invite = asyncio.run(_directory(repos, clock).get_or_generate_invite_code(org.id))

    assert len(invite.code) == INVITE_CODE_LENGTH
    assert invite.expires_at == clock.now + timedelta(hours=24)
    stored = asyncio.run(repos.orgs.get_by_id(org.id))
    assert stored.invite_code == invite.code
    assert stored.invite_code_expires_at == invite.expires_at


def test_invite_code_reused_while_valid(repos: RepoBundle) -> None:
    clock = _Clock(datetime(2026, 3, 1, 12, 0, tzinfo=UTC))
    org = make_org(repos, make_user(repos, paid=True))
    directory = _directory(repos, clock)

    first = asyncio.run(directory.get_or_generate_invite_code(org.id))
    clock.now += timedelta(hours=23)
    second = asyncio.run(directory.get_or_generate_invite_code(org.id))

    assert second == first


def test_invite_code_rotated_after_expiry(repos: RepoBundle, monkeypatch) -> None:
    clock = _Clock(datetime(2026, 3, 1, 12, 0, tzinfo=UTC))
    org = make_org(repos, make_user(repos, paid=True))
    directory = _directory(repos, clock)
    codes = iter(["AAAAAAAA", "BBBBBBBB"])
    monkeypatch.setattr(organization_service, "generate_invite_code", lambda: next(codes))

    first = asyncio.run(directory.get_or_generate_invite_code(org.id))
    clock.now += timedelta(hours=24)
    second = asyncio.run(directory.get_or_generate_invite_code(org.id))

    assert first.code == "AAAAAAAA"
    assert second.code == "BBBBBBBB"
    assert second.expires_at == clock.now + timedelta(hours=24)


def test_invite_code_force_rotates_valid_code(repos: RepoBundle, monkeypatch) -> None:
    org = make_org(repos, make_user(repos, paid=True))
    directory = _directory(repos)
    codes = iter(["AAAAAAAA", "BBBBBBBB"])
    monkeypatch.setattr(organization_service, "generate_invite_code", lambda: next(codes))

    first = asyncio.run(directory.get_or_generate_invite_code(org.id))
    forced = asyncio.run(directory.get_or_generate_invite_code(org.id, force=True))

    assert first.code == "AAAAAAAA"
    assert forced.code == "BBBBBBBB"
    assert forced.expires_at >= first.expires_at


def test_invite_code_ttl_is_configurable(repos: RepoBundle) -> None:
    clock = _Clock(datetime(2026, 3, 1, 12, 0, tzinfo=UTC))
    org = make_org(repos, make_user(repos, paid=True))
    directory = _directory(repos, clock, ttl=timedelta(hours=2))

    invite = asyncio.run(directory.get_or_generate_invite_code(org.id))
    assert invite.expires_at == clock.now + timedelta(hours=2)


def test_invite_code_redrawn_on_collision(repos: RepoBundle, monkeypatch) -> None:
    holder = make_org(repos, make_user(repos, paid=True), name="Holder")
    target = make_org(repos, make_user(repos, paid=True), name="Target")
    asyncio.run(
        repos.orgs.set_invite_code(
            holder.id, "TAKENCDE", datetime.now(UTC) + timedelta(hours=1)
        )
    )
    codes = iter(["TAKENCDE", "FRESHCDE"])
    monkeypatch.setattr(organization_service, "generate_invite_code", lambda: next(codes))

    invite = asyncio.run(_directory(repos).get_or_generate_invite_code(target.id))
    assert invite.code == "FRESHCDE"


def test_invite_code_unknown_org(repos: RepoBundle) -> None:
    with pytest.raises(NotFoundError):
        asyncio.run(_directory(repos).get_or_generate_invite_code(uuid4()))


# ---- deletion ----


def test_delete_organization_cascades_memberships(repos: RepoBundle) -> None:
    owner = make_user(repos, paid=True)
    org = make_org(repos, owner)
    member = make_user(repos)
    asyncio.run(
        repos.memberships.upsert(org.id, member.id, role="DENTIST", status="INVITED")
    )

    asyncio.run(_directory(repos).delete_organization(org.id))

    assert asyncio.run(repos.orgs.get_by_slug(org.slug)) is None
    assert asyncio.run(repos.memberships.count(org_id=org.id)) == 0
    assert asyncio.run(repos.memberships.list_by_user(owner.id)) == []


def test_deleted_slug_can_be_reused(repos: RepoBundle) -> None:
    owner = make_user(repos, paid=True)
    org = make_org(repos, owner, name="Acme")
    asyncio.run(_directory(repos).delete_organization(org.id))

    again = make_org(repos, owner, name="Acme")
    assert isinstance(again, Organization)
    assert again.slug == "acme"

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace
from datetime import datetime
from typing import Protocol
from uuid import UUID

from practice_orgs.models.organization import Organization
from practice_orgs.repos.membership_repo import InMemoryMembershipRepo


class OrgRepo(Protocol):
    async def get_by_id(self, org_id: UUID) -> Organization | None: ...
    async def get_by_slug(self, slug: str) -> Organization | None: ...
    async def find_by_invite_code(
        self, code: str, now: datetime
    ) -> Organization | None: ...
    async def add(self, org: Organization) -> None: ...
    async def set_invite_code(
        self, org_id: UUID, code: str, expires_at: datetime
    ) -> Organization | None: ...
    async def delete(self, org_id: UUID) -> bool: ...
    async def list_by_ids(self, org_ids: Iterable[UUID]) -> list[Organization]: ...


class InMemoryOrgRepo:
    """Dict-backed OrgRepo.

    Deleting an organization drops its memberships from ``memberships`` when
    given, mirroring the ON DELETE CASCADE of the memberships table.
    """

    def __init__(self, memberships: InMemoryMembershipRepo | None = None) -> None:
        self._by_id: dict[UUID, Organization] = {}
        self._by_slug: dict[str, Organization] = {}
        self._memberships = memberships

    async def get_by_id(self, org_id: UUID) -> Organization | None:
        return self._by_id.get(org_id)

    async def get_by_slug(self, slug: str) -> Organization | None:
        return self._by_slug.get(slug)

    async def find_by_invite_code(
        self, code: str, now: datetime
    ) -> Organization | None:
        for org in self._by_id.values():
            if org.invite_code == code and org.invite_code_valid_at(now):
                return org
        return None

    async def add(self, org: Organization) -> None:
        if org.slug in self._by_slug:
            raise ValueError("slug already exists")
        self._by_id[org.id] = org
        self._by_slug[org.slug] = org

    async def set_invite_code(
        self, org_id: UUID, code: str, expires_at: datetime
    ) -> Organization | None:
        existing = self._by_id.get(org_id)
        if existing is None:
            return None
        updated = replace(existing, invite_code=code, invite_code_expires_at=expires_at)
        self._by_id[org_id] = updated
        self._by_slug[updated.slug] = updated
        return updated

    async def delete(self, org_id: UUID) -> bool:
        org = self._by_id.pop(org_id, None)
        if org is None:
            return False
        self._by_slug.pop(org.slug, None)
        if self._memberships is not None:
            self._memberships.drop_org(org_id)
        return True

    async def list_by_ids(self, org_ids: Iterable[UUID]) -> list[Organization]:
        return [self._by_id[i] for i in org_ids if i in self._by_id]

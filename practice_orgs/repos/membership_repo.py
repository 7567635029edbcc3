from __future__ import annotations

from collections.abc import Collection
from dataclasses import replace
from typing import Protocol
from uuid import UUID

from practice_orgs.models.organization import Membership


class MembershipRepo(Protocol):
    async def get(self, org_id: UUID, user_id: UUID) -> Membership | None: ...
    async def get_by_id(self, membership_id: UUID) -> Membership | None: ...
    async def add(self, membership: Membership) -> None: ...
    async def upsert(
        self, org_id: UUID, user_id: UUID, *, role: str, status: str
    ) -> Membership: ...
    async def update(
        self, membership_id: UUID, *, status: str, role: str | None = None
    ) -> Membership | None: ...
    async def list_by_org(
        self, org_id: UUID, statuses: Collection[str] | None = None
    ) -> list[Membership]: ...
    async def list_by_user(
        self, user_id: UUID, statuses: Collection[str] | None = None
    ) -> list[Membership]: ...
    async def count(
        self,
        *,
        org_id: UUID | None = None,
        user_id: UUID | None = None,
        role: str | None = None,
        status: str | None = None,
    ) -> int: ...


class InMemoryMembershipRepo:
    """Dict-backed MembershipRepo keyed by (org_id, user_id).

    Listings come back in ``created_at`` order; ties keep insertion order.
    """

    def __init__(self) -> None:
        self._store: dict[tuple[UUID, UUID], Membership] = {}

    async def get(self, org_id: UUID, user_id: UUID) -> Membership | None:
        return self._store.get((org_id, user_id))

    async def get_by_id(self, membership_id: UUID) -> Membership | None:
        for m in self._store.values():
            if m.id == membership_id:
                return m
        return None

    async def add(self, membership: Membership) -> None:
        key = (membership.org_id, membership.user_id)
        if key in self._store:
            raise ValueError("membership already exists")
        self._store[key] = membership

    async def upsert(
        self, org_id: UUID, user_id: UUID, *, role: str, status: str
    ) -> Membership:
        key = (org_id, user_id)
        existing = self._store.get(key)
        if existing is None:
            membership = Membership.new(
                org_id=org_id, user_id=user_id, role=role, status=status
            )
        else:
            membership = replace(existing, role=role, status=status)
        self._store[key] = membership
        return membership

    async def update(
        self, membership_id: UUID, *, status: str, role: str | None = None
    ) -> Membership | None:
        existing = await self.get_by_id(membership_id)
        if existing is None:
            return None
        updated = replace(
            existing, status=status, role=role if role is not None else existing.role
        )
        self._store[(existing.org_id, existing.user_id)] = updated
        return updated

    async def list_by_org(
        self, org_id: UUID, statuses: Collection[str] | None = None
    ) -> list[Membership]:
        found = [
            m
            for m in self._store.values()
            if m.org_id == org_id and (statuses is None or m.status in statuses)
        ]
        return sorted(found, key=lambda m: m.created_at)

    async def list_by_user(
        self, user_id: UUID, statuses: Collection[str] | None = None
    ) -> list[Membership]:
        found = [
            m
            for m in self._store.values()
            if m.user_id == user_id and (statuses is None or m.status in statuses)
        ]
        return sorted(found, key=lambda m: m.created_at)

    async def count(
        self,
        *,
        org_id: UUID | None = None,
        user_id: UUID | None = None,
        role: str | None = None,
        status: str | None = None,
    ) -> int:
        return sum(
            1
            for m in self._store.values()
            if (org_id is None or m.org_id == org_id)
            and (user_id is None or m.user_id == user_id)
            and (role is None or m.role == role)
            and (status is None or m.status == status)
        )

    def drop_org(self, org_id: UUID) -> None:
        for key in [k for k in self._store if k[0] == org_id]:
            del self._store[key]

"""PostgreSQL implementation of MembershipRepo."""

from __future__ import annotations

import uuid
from collections.abc import Collection
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from practice_orgs.db.tables import MembershipRow
from practice_orgs.models.organization import Membership


class PgMembershipRepo:
    """Satisfies the MembershipRepo Protocol using PostgreSQL via SQLAlchemy."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, org_id: UUID, user_id: UUID) -> Membership | None:
        stmt = select(MembershipRow).where(
            MembershipRow.org_id == org_id, MembershipRow.user_id == user_id
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_membership(row)

    async def get_by_id(self, membership_id: UUID) -> Membership | None:
        stmt = select(MembershipRow).where(MembershipRow.id == membership_id)
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_membership(row)

    async def add(self, membership: Membership) -> None:
        row = MembershipRow(
            id=membership.id,
            org_id=membership.org_id,
            user_id=membership.user_id,
            role=membership.role,
            status=membership.status,
            created_at=membership.created_at,
        )
        self._session.add(row)
        await self._session.flush()

    async def upsert(
        self, org_id: UUID, user_id: UUID, *, role: str, status: str
    ) -> Membership:
        # Atomic on the (user_id, org_id) unique key: concurrent requests
        # resolve to last-write-wins.
        stmt = (
            pg_insert(MembershipRow)
            .values(
                id=uuid.uuid4(),
                org_id=org_id,
                user_id=user_id,
                role=role,
                status=status,
            )
            .on_conflict_do_update(
                index_elements=[MembershipRow.user_id, MembershipRow.org_id],
                set_={"role": role, "status": status},
            )
            .returning(MembershipRow)
            .execution_options(populate_existing=True)
        )
        row = (await self._session.execute(stmt)).scalar_one()
        return _row_to_membership(row)

    async def update(
        self, membership_id: UUID, *, status: str, role: str | None = None
    ) -> Membership | None:
        values: dict[str, str] = {"status": status}
        if role is not None:
            values["role"] = role
        stmt = (
            update(MembershipRow)
            .where(MembershipRow.id == membership_id)
            .values(**values)
        )
        result = await self._session.execute(stmt)
        if result.rowcount == 0:
            return None
        return await self.get_by_id(membership_id)

    async def list_by_org(
        self, org_id: UUID, statuses: Collection[str] | None = None
    ) -> list[Membership]:
        stmt = select(MembershipRow).where(MembershipRow.org_id == org_id)
        if statuses is not None:
            stmt = stmt.where(MembershipRow.status.in_(list(statuses)))
        stmt = stmt.order_by(MembershipRow.created_at.asc())
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_membership(r) for r in rows]

    async def list_by_user(
        self, user_id: UUID, statuses: Collection[str] | None = None
    ) -> list[Membership]:
        stmt = select(MembershipRow).where(MembershipRow.user_id == user_id)
        if statuses is not None:
            stmt = stmt.where(MembershipRow.status.in_(list(statuses)))
        stmt = stmt.order_by(MembershipRow.created_at.asc())
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_membership(r) for r in rows]

    async def count(
        self,
        *,
        org_id: UUID | None = None,
        user_id: UUID | None = None,
        role: str | None = None,
        status: str | None = None,
    ) -> int:
        stmt = select(func.count()).select_from(MembershipRow)
        if org_id is not None:
            stmt = stmt.where(MembershipRow.org_id == org_id)
        if user_id is not None:
            stmt = stmt.where(MembershipRow.user_id == user_id)
        if role is not None:
            stmt = stmt.where(MembershipRow.role == role)
        if status is not None:
            stmt = stmt.where(MembershipRow.status == status)
        return (await self._session.execute(stmt)).scalar_one()


def _row_to_membership(row: MembershipRow) -> Membership:
    return Membership(
        id=row.id,
        org_id=row.org_id,
        user_id=row.user_id,
        role=row.role,
        status=row.status,
        created_at=row.created_at,
    )

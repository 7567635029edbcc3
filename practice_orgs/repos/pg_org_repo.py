"""PostgreSQL implementation of OrgRepo."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from practice_orgs.db.tables import OrganizationRow
from practice_orgs.models.organization import Organization


class PgOrgRepo:
    """Satisfies the OrgRepo Protocol using PostgreSQL via SQLAlchemy."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, org_id: UUID) -> Organization | None:
        stmt = select(OrganizationRow).where(OrganizationRow.id == org_id)
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_org(row)

    async def get_by_slug(self, slug: str) -> Organization | None:
        stmt = select(OrganizationRow).where(OrganizationRow.slug == slug)
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_org(row)

    async def find_by_invite_code(
        self, code: str, now: datetime
    ) -> Organization | None:
        stmt = (
            select(OrganizationRow)
            .where(
                OrganizationRow.invite_code == code,
                OrganizationRow.invite_code_expires_at > now,
            )
            .limit(1)
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_org(row)

    async def add(self, org: Organization) -> None:
        row = OrganizationRow(
            id=org.id,
            name=org.name,
            slug=org.slug,
            status=org.status,
            invite_code=org.invite_code,
            invite_code_expires_at=org.invite_code_expires_at,
        )
        if org.created_at is not None:
            row.created_at = org.created_at
        self._session.add(row)
        await self._session.flush()

    async def set_invite_code(
        self, org_id: UUID, code: str, expires_at: datetime
    ) -> Organization | None:
        stmt = (
            update(OrganizationRow)
            .where(OrganizationRow.id == org_id)
            .values(invite_code=code, invite_code_expires_at=expires_at)
        )
        result = await self._session.execute(stmt)
        if result.rowcount == 0:
            return None
        return await self.get_by_id(org_id)

    async def delete(self, org_id: UUID) -> bool:
        stmt = delete(OrganizationRow).where(OrganizationRow.id == org_id)
        result = await self._session.execute(stmt)
        return result.rowcount > 0

    async def list_by_ids(self, org_ids: Iterable[UUID]) -> list[Organization]:
        ids = list(org_ids)
        if not ids:
            return []
        stmt = select(OrganizationRow).where(OrganizationRow.id.in_(ids))
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_org(r) for r in rows]


def _row_to_org(row: OrganizationRow) -> Organization:
    return Organization(
        id=row.id,
        name=row.name,
        slug=row.slug,
        status=row.status,
        invite_code=row.invite_code,
        invite_code_expires_at=row.invite_code_expires_at,
        created_at=row.created_at,
    )

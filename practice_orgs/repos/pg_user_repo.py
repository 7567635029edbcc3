"""PostgreSQL implementation of UserRepo."""

from __future__ import annotations

from collections.abc import Iterable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from practice_orgs.db.tables import UserRow
from practice_orgs.models.user import User


class PgUserRepo:
    """Satisfies the UserRepo Protocol using PostgreSQL via SQLAlchemy."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, user_id: UUID) -> User | None:
        stmt = select(UserRow).where(UserRow.id == user_id)
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_user(row)

    async def get_by_email(self, email: str) -> User | None:
        stmt = select(UserRow).where(UserRow.email == email)
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_user(row)

    async def add(self, user: User) -> None:
        row = UserRow(
            id=user.id,
            email=user.email,
            name=user.name,
            password_hash=user.password_hash,
            image=user.image,
        )
        self._session.add(row)
        await self._session.flush()

    async def list_by_ids(self, user_ids: Iterable[UUID]) -> list[User]:
        ids = list(set(user_ids))
        if not ids:
            return []
        stmt = select(UserRow).where(UserRow.id.in_(ids))
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_user(r) for r in rows]


def _row_to_user(row: UserRow) -> User:
    return User(
        id=row.id,
        email=row.email,
        name=row.name or "",
        password_hash=row.password_hash,
        image=row.image,
    )

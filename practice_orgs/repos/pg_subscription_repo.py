"""PostgreSQL implementation of SubscriptionRepo."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from practice_orgs.db.tables import SubscriptionRow
from practice_orgs.models.subscription import Subscription


class PgSubscriptionRepo:
    """Satisfies the SubscriptionRepo Protocol using PostgreSQL via SQLAlchemy."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_user(self, user_id: UUID) -> Subscription | None:
        stmt = select(SubscriptionRow).where(SubscriptionRow.user_id == user_id)
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_subscription(row)

    async def ensure_trial(self, user_id: UUID) -> Subscription:
        # The conflict branch rewrites user_id onto itself so RETURNING always
        # yields the row; an existing subscription keeps its plan and status.
        insert = pg_insert(SubscriptionRow).values(
            user_id=user_id, plan_name="trial", status="TRIAL"
        )
        stmt = (
            insert.on_conflict_do_update(
                index_elements=[SubscriptionRow.user_id],
                set_={"user_id": insert.excluded.user_id},
            )
            .returning(SubscriptionRow)
            .execution_options(populate_existing=True)
        )
        row = (await self._session.execute(stmt)).scalar_one()
        return _row_to_subscription(row)

    async def set_status(
        self, user_id: UUID, status: str, plan_name: str
    ) -> Subscription | None:
        stmt = (
            update(SubscriptionRow)
            .where(SubscriptionRow.user_id == user_id)
            .values(status=status, plan_name=plan_name)
        )
        result = await self._session.execute(stmt)
        if result.rowcount == 0:
            return None
        return await self.get_by_user(user_id)


def _row_to_subscription(row: SubscriptionRow) -> Subscription:
    return Subscription(
        user_id=row.user_id,
        plan_name=row.plan_name,
        status=row.status,
    )

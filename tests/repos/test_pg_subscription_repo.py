from __future__ import annotations

import asyncio
from uuid import uuid4

from sqlalchemy.dialects import postgresql

from practice_orgs.db.tables import SubscriptionRow
from practice_orgs.repos.pg_subscription_repo import PgSubscriptionRepo


class _Result:
    def __init__(self, row: SubscriptionRow) -> None:
        self._row = row

    def scalar_one(self) -> SubscriptionRow:
        return self._row


class _RecordingSession:
    """Stands in for AsyncSession: keeps each statement, answers with a fixed row."""

    def __init__(self, row: SubscriptionRow) -> None:
        self.row = row
        self.statements: list = []

    async def execute(self, stmt):
        self.statements.append(stmt)
        return _Result(self.row)


def test_ensure_trial_returns_row_from_single_upsert() -> None:
    user_id = uuid4()
    existing = SubscriptionRow(user_id=user_id, plan_name="pro", status="ACTIVE")
    session = _RecordingSession(existing)

    sub = asyncio.run(PgSubscriptionRepo(session).ensure_trial(user_id))  # type: ignore[arg-type]

    assert (sub.user_id, sub.plan_name, sub.status) == (user_id, "pro", "ACTIVE")
    assert len(session.statements) == 1
    sql = str(session.statements[0].compile(dialect=postgresql.dialect()))
    assert "ON CONFLICT (user_id) DO UPDATE SET user_id = excluded.user_id" in sql
    assert "RETURNING" in sql
    assert "plan_name = " not in sql.split("DO UPDATE")[1]

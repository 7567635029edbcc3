from __future__ import annotations

from dataclasses import replace
from typing import Protocol
from uuid import UUID

from practice_orgs.models.subscription import Subscription


class SubscriptionRepo(Protocol):
    """Subscriptions are written by the billing side: sign-up provisions the
    trial via ``ensure_trial`` and the payment integration moves a user to a
    paid plan through ``set_status``. Organization code only reads them.
    """

    async def get_by_user(self, user_id: UUID) -> Subscription | None: ...
    async def ensure_trial(self, user_id: UUID) -> Subscription: ...
    async def set_status(
        self, user_id: UUID, status: str, plan_name: str
    ) -> Subscription | None: ...


class InMemorySubscriptionRepo:
    def __init__(self) -> None:
        self._store: dict[UUID, Subscription] = {}

    async def get_by_user(self, user_id: UUID) -> Subscription | None:
        return self._store.get(user_id)

    async def ensure_trial(self, user_id: UUID) -> Subscription:
        # Upsert with an empty update: an existing subscription is left alone.
        existing = self._store.get(user_id)
        if existing is not None:
            return existing
        sub = Subscription(user_id=user_id)
        self._store[user_id] = sub
        return sub

    async def set_status(
        self, user_id: UUID, status: str, plan_name: str
    ) -> Subscription | None:
        existing = self._store.get(user_id)
        if existing is None:
            return None
        updated = replace(existing, status=status, plan_name=plan_name)
        self._store[user_id] = updated
        return updated

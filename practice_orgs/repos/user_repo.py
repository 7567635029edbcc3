from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol
from uuid import UUID

from practice_orgs.models.user import User


class UserRepo(Protocol):
    async def get_by_id(self, user_id: UUID) -> User | None: ...
    async def get_by_email(self, email: str) -> User | None: ...
    async def add(self, user: User) -> None: ...
    async def list_by_ids(self, user_ids: Iterable[UUID]) -> list[User]: ...


class InMemoryUserRepo:
    def __init__(self) -> None:
        self._by_email: dict[str, User] = {}
        self._by_id: dict[UUID, User] = {}

    async def get_by_id(self, user_id: UUID) -> User | None:
        return self._by_id.get(user_id)

    async def get_by_email(self, email: str) -> User | None:
        return self._by_email.get(email)

    async def add(self, user: User) -> None:
        if user.email in self._by_email:
            raise ValueError("email already exists")
        self._by_email[user.email] = user
        self._by_id[user.id] = user

    async def list_by_ids(self, user_ids: Iterable[UUID]) -> list[User]:
        return [self._by_id[i] for i in set(user_ids) if i in self._by_id]

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID, uuid4


@dataclass(frozen=True, slots=True)
class User:
    id: UUID
    email: str
    name: str
    password_hash: str
    image: str | None = None

    @staticmethod
    def new(*, email: str, name: str, password_hash: str) -> User:
        return User(id=uuid4(), email=email, name=name, password_hash=password_hash)


@dataclass(frozen=True, slots=True)
class SessionUser:
    """Identity resolved from the request's session.

    Carried through the request via FastAPI's dependency system; endpoints
    receive this instead of raw cookie values.
    """

    id: UUID
    name: str
    email: str
    image: str | None = None

    @staticmethod
    def from_user(user: User) -> SessionUser:
        return SessionUser(id=user.id, name=user.name, email=user.email, image=user.image)

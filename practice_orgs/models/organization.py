from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID, uuid4

ROLES = ("OWNER", "ADMIN", "DENTIST", "SECRETARY", "FINANCE")
DEFAULT_ROLE = "DENTIST"

ORG_STATUSES = ("TRIAL", "ACTIVE")
MEMBERSHIP_STATUSES = ("ACTIVE", "INVITED", "REMOVED")


def utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True, slots=True)
class Organization:
    id: UUID
    name: str
    slug: str
    status: str = "TRIAL"  # TRIAL|ACTIVE
    invite_code: str | None = None
    invite_code_expires_at: datetime | None = None
    created_at: datetime | None = None

    @staticmethod
    def new(*, name: str, slug: str) -> Organization:
        return Organization(id=uuid4(), name=name, slug=slug, created_at=utcnow())

    def invite_code_valid_at(self, now: datetime) -> bool:
        return (
            self.invite_code is not None
            and self.invite_code_expires_at is not None
            and self.invite_code_expires_at > now
        )


@dataclass(frozen=True, slots=True)
class Membership:
    id: UUID
    org_id: UUID
    user_id: UUID
    role: str  # OWNER|ADMIN|DENTIST|SECRETARY|FINANCE
    status: str  # ACTIVE|INVITED|REMOVED
    created_at: datetime

    @staticmethod
    def new(*, org_id: UUID, user_id: UUID, role: str, status: str) -> Membership:
        return Membership(
            id=uuid4(),
            org_id=org_id,
            user_id=user_id,
            role=role,
            status=status,
            created_at=utcnow(),
        )

    @property
    def is_active(self) -> bool:
        return self.status == "ACTIVE"

    def has_any_role(self, roles: set[str]) -> bool:
        return self.role in roles

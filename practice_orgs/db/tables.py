"""SQLAlchemy table definitions.

These map to the frozen dataclass domain models in practice_orgs/models/.
Repos convert between SQLAlchemy rows and domain dataclasses.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from practice_orgs.db.engine import Base
from practice_orgs.models.organization import MEMBERSHIP_STATUSES, ORG_STATUSES, ROLES
from practice_orgs.models.subscription import SUBSCRIPTION_STATUSES


def _one_of(column: str, values: tuple[str, ...], name: str) -> CheckConstraint:
    allowed = ", ".join(f"'{v}'" for v in values)
    return CheckConstraint(f"{column} IN ({allowed})", name=name)


# --- Auth collaborator ---


class UserRow(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    password_hash: Mapped[str] = mapped_column(Text, nullable=False)
    image: Mapped[str | None] = mapped_column(Text, nullable=True)


class SubscriptionRow(Base):
    __tablename__ = "subscriptions"

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )
    plan_name: Mapped[str] = mapped_column(String(64), nullable=False, default="trial")
    status: Mapped[str] = mapped_column(
        String(32), nullable=False, default="TRIAL"
    )  # TRIAL|ACTIVE

    __table_args__ = (
        _one_of("status", SUBSCRIPTION_STATUSES, "ck_subscriptions_status"),
    )


# --- Organizations ---


class OrganizationRow(Base):
    __tablename__ = "organizations"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    status: Mapped[str] = mapped_column(
        String(32), nullable=False, default="TRIAL"
    )  # TRIAL|ACTIVE
    invite_code: Mapped[str | None] = mapped_column(
        String(8), nullable=True, index=True
    )
    invite_code_expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    __table_args__ = (_one_of("status", ORG_STATUSES, "ck_organizations_status"),)


class MembershipRow(Base):
    __tablename__ = "memberships"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    org_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role: Mapped[str] = mapped_column(
        String(32), nullable=False, default="DENTIST"
    )  # OWNER|ADMIN|DENTIST|SECRETARY|FINANCE
    status: Mapped[str] = mapped_column(
        String(32), nullable=False, default="INVITED"
    )  # ACTIVE|INVITED|REMOVED
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    __table_args__ = (
        UniqueConstraint("user_id", "org_id"),
        _one_of("role", ROLES, "ck_memberships_role"),
        _one_of("status", MEMBERSHIP_STATUSES, "ck_memberships_status"),
    )

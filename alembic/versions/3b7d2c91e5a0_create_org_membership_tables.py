"""create users, subscriptions, organizations and memberships

Revision ID: 3b7d2c91e5a0
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3b7d2c91e5a0"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("email", sa.String(length=320), nullable=False, unique=True),
        sa.Column("name", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("password_hash", sa.Text(), nullable=False),
        sa.Column("image", sa.Text(), nullable=True),
    )
    op.create_table(
        "subscriptions",
        sa.Column(
            "user_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "plan_name", sa.String(length=64), nullable=False, server_default="trial"
        ),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="TRIAL"),
        sa.CheckConstraint(
            "status IN ('TRIAL', 'ACTIVE')", name="ck_subscriptions_status"
        ),
    )
    op.create_table(
        "organizations",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("slug", sa.String(length=255), nullable=False, unique=True),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="TRIAL"),
        sa.Column("invite_code", sa.String(length=8), nullable=True),
        sa.Column("invite_code_expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.CheckConstraint(
            "status IN ('TRIAL', 'ACTIVE')", name="ck_organizations_status"
        ),
    )
    op.create_index("ix_organizations_invite_code", "organizations", ["invite_code"])
    op.create_table(
        "memberships",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "org_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("organizations.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "user_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("role", sa.String(length=32), nullable=False, server_default="DENTIST"),
        sa.Column(
            "status", sa.String(length=32), nullable=False, server_default="INVITED"
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.UniqueConstraint("user_id", "org_id"),
        sa.CheckConstraint(
            "role IN ('OWNER', 'ADMIN', 'DENTIST', 'SECRETARY', 'FINANCE')",
            name="ck_memberships_role",
        ),
        sa.CheckConstraint(
            "status IN ('ACTIVE', 'INVITED', 'REMOVED')",
            name="ck_memberships_status",
        ),
    )
    op.create_index("ix_memberships_org_id", "memberships", ["org_id"])
    op.create_index("ix_memberships_user_id", "memberships", ["user_id"])


def downgrade() -> None:
    op.drop_index("ix_memberships_user_id", table_name="memberships")
    op.drop_index("ix_memberships_org_id", table_name="memberships")
    op.drop_table("memberships")
    op.drop_index("ix_organizations_invite_code", table_name="organizations")
    op.drop_table("organizations")
    op.drop_table("subscriptions")
    op.drop_table("users")

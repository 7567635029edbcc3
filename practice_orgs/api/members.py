"""Membership endpoints: invite-code redemption, listing, admin actions."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import BaseModel, field_validator

from practice_orgs.api.dependencies import CurrentUser, Registry, require_org_access
from practice_orgs.services.access import MANAGER_ROLES, OrgAccess, ensure_manageable
from practice_orgs.services.errors import NotFoundError, ValidationError
from practice_orgs.services.membership_service import ACTIONS

router = APIRouter(prefix="/api/organizations", tags=["members"])

_require_member = require_org_access()
_require_manager = require_org_access(
    MANAGER_ROLES,
    role_message="Apenas OWNER ou ADMIN podem gerenciar membros",
)


class JoinByCodeIn(BaseModel):
    code: str | None = None


class JoinByCodeOut(BaseModel):
    orgName: str
    message: str


class MemberOut(BaseModel):
    membershipId: str
    authUserId: str
    name: str
    email: str
    role: str
    status: str
    createdAt: datetime


class PatchMemberIn(BaseModel):
    action: str | None = None
    role: str | None = None

    @field_validator("role", mode="before")
    @classmethod
    def _non_string_role_is_unset(cls, value: object) -> object:
        # Anything that is not a role name falls back to the default role.
        return value if isinstance(value, str) else None


class MessageOut(BaseModel):
    message: str


@router.post("/join-by-code", response_model=JoinByCodeOut)
async def join_by_code(
    body: JoinByCodeIn,
    user: CurrentUser,
    registry: Registry,
) -> JoinByCodeOut:
    """File a join request for the organization holding ``code``."""
    result = await registry.join_by_code(user.id, body.code or "")
    return JoinByCodeOut(orgName=result.org_name, message=result.message)


@router.get("/{slug}/members", response_model=list[MemberOut])
async def list_members(
    access: Annotated[OrgAccess, Depends(_require_member)],
    registry: Registry,
) -> list[MemberOut]:
    """Active and pending members, oldest first. Any active member."""
    members = await registry.list_members(access.organization.id)
    return [
        MemberOut(
            membershipId=str(m.membership_id),
            authUserId=str(m.user_id),
            name=m.name,
            email=m.email,
            role=m.role,
            status=m.status,
            createdAt=m.created_at,
        )
        for m in members
    ]


@router.patch("/{slug}/members/{member_id}", response_model=MessageOut)
async def patch_member(
    member_id: str,
    body: PatchMemberIn,
    user: CurrentUser,
    access: Annotated[OrgAccess, Depends(_require_manager)],
    registry: Registry,
) -> MessageOut:
    """Approve, reject or remove a member. OWNER or ADMIN only."""
    if body.action not in ACTIONS:
        raise ValidationError("Ação inválida")

    try:
        target_id = UUID(member_id)
    except ValueError:
        raise NotFoundError("Membro não encontrado") from None

    target = await registry.get_member(target_id)
    ensure_manageable(access, target, user.id)

    message = await registry.update_member_status(target_id, body.action, body.role)
    return MessageOut(message=message)

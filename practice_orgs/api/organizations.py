"""Organization endpoints.

Org context is resolved from the ``{slug}`` path segment and validated
against the caller's membership before any endpoint body runs.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel

from practice_orgs.api.dependencies import (
    CurrentUser,
    Directory,
    require_org_access,
)
from practice_orgs.models.organization import Organization
from practice_orgs.services.access import MANAGER_ROLES, OWNER_ONLY, OrgAccess
from practice_orgs.services.errors import ValidationError
from practice_orgs.services.organization_service import MIN_NAME_LENGTH

router = APIRouter(prefix="/api/organizations", tags=["organizations"])

_require_member = require_org_access(no_access_message="Sem acesso a esta organização")
_require_manager = require_org_access(
    MANAGER_ROLES,
    role_message="Apenas OWNER ou ADMIN podem ver o código de convite",
)
_require_owner = require_org_access(
    OWNER_ONLY,
    no_access_message="Apenas o proprietário pode excluir a organização",
)


# --- Pydantic schemas ---


class OrgCreateIn(BaseModel):
    name: str | None = None


class OrgCreatedOut(BaseModel):
    id: str
    name: str
    slug: str


class OrganizationOut(BaseModel):
    id: str
    name: str
    slug: str
    status: str
    createdAt: datetime | None

    @staticmethod
    def from_org(org: Organization) -> OrganizationOut:
        return OrganizationOut(
            id=str(org.id),
            name=org.name,
            slug=org.slug,
            status=org.status,
            createdAt=org.created_at,
        )


class OrgWithRoleOut(BaseModel):
    organization: OrganizationOut
    role: str


class InviteCodeOut(BaseModel):
    code: str
    expiresAt: datetime


class MessageOut(BaseModel):
    message: str


# --- Endpoints ---


@router.post("", response_model=OrgCreatedOut, status_code=status.HTTP_201_CREATED)
async def create_org(
    body: OrgCreateIn,
    user: CurrentUser,
    directory: Directory,
) -> OrgCreatedOut:
    """Create an organization. The creator becomes its OWNER."""
    name = body.name or ""
    # A bad name is a 400 whatever the caller's plan.
    if len(name.strip()) < MIN_NAME_LENGTH:
        raise ValidationError("Nome deve ter pelo menos 2 caracteres")

    await directory.ensure_can_create(user.id)
    org = await directory.create_organization(user.id, name)
    return OrgCreatedOut(id=str(org.id), name=org.name, slug=org.slug)


@router.get("/{slug}", response_model=OrgWithRoleOut)
async def get_org(
    access: Annotated[OrgAccess, Depends(_require_member)],
) -> OrgWithRoleOut:
    """Organization details plus the caller's role. Any active member."""
    return OrgWithRoleOut(
        organization=OrganizationOut.from_org(access.organization),
        role=access.role,
    )


@router.delete("/{slug}", response_model=MessageOut)
async def delete_org(
    access: Annotated[OrgAccess, Depends(_require_owner)],
    directory: Directory,
) -> MessageOut:
    """Delete the organization and its memberships. OWNER only."""
    await directory.delete_organization(access.organization.id)
    return MessageOut(message="Organização excluída com sucesso")


@router.get("/{slug}/invite-code", response_model=InviteCodeOut)
async def get_invite_code(
    access: Annotated[OrgAccess, Depends(_require_manager)],
    directory: Directory,
    force: Annotated[str | None, Query()] = None,
) -> InviteCodeOut:
    """Current invite code, rotated when expired or when ``force=true``."""
    invite = await directory.get_or_generate_invite_code(
        access.organization.id, force=force == "true"
    )
    return InviteCodeOut(code=invite.code, expiresAt=invite.expires_at)

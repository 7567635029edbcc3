"""Caller-centric endpoints.

GET /api/me                : identity plus primary organization and role
GET /api/me/organizations  : every organization the caller is active in
"""

from __future__ import annotations

from fastapi import APIRouter
from pydantic import BaseModel

from practice_orgs.api.dependencies import CurrentUser, Registry
from practice_orgs.api.organizations import OrganizationOut

router = APIRouter(prefix="/api/me", tags=["me"])


class UserOut(BaseModel):
    id: str
    name: str
    email: str
    image: str | None


class MeOut(BaseModel):
    user: UserOut
    organization: OrganizationOut | None
    role: str | None


class MyOrganizationOut(BaseModel):
    id: str
    name: str
    slug: str
    status: str
    role: str


@router.get("", response_model=MeOut)
async def get_me(user: CurrentUser, registry: Registry) -> MeOut:
    primary = await registry.primary_membership(user.id)
    return MeOut(
        user=UserOut(id=str(user.id), name=user.name, email=user.email, image=user.image),
        organization=OrganizationOut.from_org(primary.organization) if primary else None,
        role=primary.role if primary else None,
    )


@router.get("/organizations", response_model=list[MyOrganizationOut])
async def get_my_organizations(
    user: CurrentUser, registry: Registry
) -> list[MyOrganizationOut]:
    found = await registry.list_user_organizations(user.id)
    return [
        MyOrganizationOut(
            id=str(a.organization.id),
            name=a.organization.name,
            slug=a.organization.slug,
            status=a.organization.status,
            role=a.role,
        )
        for a in found
    ]

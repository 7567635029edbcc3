"""Org-scoped authorization resolution.

Every org-scoped operation goes through the same steps: find the
organization by slug, find the caller's membership, require it ACTIVE and,
optionally, require one of a set of roles. resolve_org_access does all of
it and hands back the typed pair, or raises the typed failure.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from uuid import UUID

from practice_orgs.models.organization import Membership, Organization
from practice_orgs.repos.membership_repo import MembershipRepo
from practice_orgs.repos.org_repo import OrgRepo
from practice_orgs.services.errors import (
    AuthorizationError,
    NotFoundError,
    SelfActionError,
)

logger = logging.getLogger(__name__)

MANAGER_ROLES = frozenset({"OWNER", "ADMIN"})
OWNER_ONLY = frozenset({"OWNER"})


@dataclass(frozen=True, slots=True)
class OrgAccess:
    organization: Organization
    membership: Membership

    @property
    def role(self) -> str:
        return self.membership.role


async def resolve_org_access(
    orgs: OrgRepo,
    memberships: MembershipRepo,
    *,
    user_id: UUID,
    slug: str,
    roles: frozenset[str] | None = None,
    no_access_message: str = "Sem acesso",
    role_message: str | None = None,
) -> OrgAccess:
    """Load the organization and the caller's ACTIVE membership.

    Raises NotFoundError when the slug is unknown, AuthorizationError when
    the caller has no ACTIVE membership, or holds none of ``roles``.
    """
    org = await orgs.get_by_slug(slug)
    if org is None:
        raise NotFoundError("Organização não encontrada")

    membership = await memberships.get(org.id, user_id)
    if membership is None or not membership.is_active:
        logger.warning(
            "Access denied: user=%s not an active member of org=%s", user_id, org.id
        )
        raise AuthorizationError(no_access_message)

    if roles is not None and not membership.has_any_role(set(roles)):
        logger.warning(
            "Access denied: user=%s role=%s required_any=%s org=%s",
            user_id,
            membership.role,
            sorted(roles),
            org.id,
        )
        raise AuthorizationError(role_message or no_access_message)

    return OrgAccess(organization=org, membership=membership)


def ensure_manageable(
    access: OrgAccess, target: Membership | None, caller_id: UUID
) -> Membership:
    """Check a patch target belongs to the resolved org and is not the caller.

    Scoping by org stops a manager of one organization from touching
    another's memberships by guessing ids.
    """
    if target is None or target.org_id != access.organization.id:
        raise NotFoundError("Membro não encontrado")
    if target.user_id == caller_id:
        raise SelfActionError()
    return target

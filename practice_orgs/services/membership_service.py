"""Membership registry: invite-code redemption and member transitions.

State machine per (user, organization)::

    (none)  --join_by_code-->  INVITED  --approve-->  ACTIVE
                                  | reject              | remove
                                  v                     v
                               REMOVED <----------------+

REMOVED rows are kept; redeeming a fresh code flips them back to INVITED.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from practice_orgs.core.metrics import JOIN_REQUESTS, MEMBERSHIP_TRANSITIONS
from practice_orgs.models.organization import DEFAULT_ROLE, ROLES, Membership, utcnow
from practice_orgs.repos.membership_repo import MembershipRepo
from practice_orgs.repos.org_repo import OrgRepo
from practice_orgs.repos.user_repo import UserRepo
from practice_orgs.services.access import OrgAccess
from practice_orgs.services.errors import (
    AlreadyMemberError,
    DuplicateRequestError,
    InvalidCodeError,
    LastOwnerError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

ACTIONS = ("approve", "reject", "remove")
LISTED_STATUSES = ("ACTIVE", "INVITED")
UNKNOWN_USER_NAME = "Desconhecido"
JOIN_REQUESTED_MESSAGE = "Solicitação enviada! Aguarde aprovação do responsável."

_ACTION_MESSAGES = {
    "approve": "Membro aprovado",
    "reject": "Solicitação rejeitada",
    "remove": "Membro removido",
}


@dataclass(frozen=True, slots=True)
class JoinResult:
    org_name: str
    message: str


@dataclass(frozen=True, slots=True)
class MemberView:
    membership_id: UUID
    user_id: UUID
    name: str
    email: str
    role: str
    status: str
    created_at: datetime


def normalize_code(code: str) -> str:
    return code.strip().upper()


class MembershipRegistry:
    def __init__(
        self,
        orgs: OrgRepo,
        memberships: MembershipRepo,
        users: UserRepo,
        *,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._orgs = orgs
        self._memberships = memberships
        self._users = users
        self._clock = clock

    async def get_membership(self, user_id: UUID, org_id: UUID) -> Membership | None:
        return await self._memberships.get(org_id, user_id)

    async def get_member(self, member_id: UUID) -> Membership | None:
        return await self._memberships.get_by_id(member_id)

    async def join_by_code(self, user_id: UUID, code: str) -> JoinResult:
        """Redeem an invite code: files a pending (INVITED) DENTIST request."""
        normalized = normalize_code(code or "")
        if not normalized:
            raise ValidationError("Código inválido")

        org = await self._orgs.find_by_invite_code(normalized, self._clock())
        if org is None:
            JOIN_REQUESTS.labels(result="invalid_code").inc()
            logger.info("Join rejected: invalid or expired code  user=%s", user_id)
            raise InvalidCodeError()

        existing = await self._memberships.get(org.id, user_id)
        if existing is not None and existing.status == "ACTIVE":
            JOIN_REQUESTS.labels(result="already_member").inc()
            raise AlreadyMemberError()
        if existing is not None and existing.status == "INVITED":
            JOIN_REQUESTS.labels(result="duplicate").inc()
            raise DuplicateRequestError()

        # Role is reset on every request, whatever the row held before removal.
        await self._memberships.upsert(
            org.id, user_id, role=DEFAULT_ROLE, status="INVITED"
        )
        JOIN_REQUESTS.labels(result="requested").inc()
        logger.info("Join requested  org_id=%s user=%s", org.id, user_id)
        return JoinResult(org_name=org.name, message=JOIN_REQUESTED_MESSAGE)

    async def list_members(self, org_id: UUID) -> list[MemberView]:
        memberships = await self._memberships.list_by_org(org_id, LISTED_STATUSES)
        users = await self._users.list_by_ids(m.user_id for m in memberships)
        by_id = {u.id: u for u in users}

        views: list[MemberView] = []
        for m in memberships:
            user = by_id.get(m.user_id)
            views.append(
                MemberView(
                    membership_id=m.id,
                    user_id=m.user_id,
                    name=user.name if user is not None else UNKNOWN_USER_NAME,
                    email=user.email if user is not None else "",
                    role=m.role,
                    status=m.status,
                    created_at=m.created_at,
                )
            )
        return views

    async def update_member_status(
        self, member_id: UUID, action: str, role: str | None = None
    ) -> str:
        """Apply an admin action and return the message to show.

        ``approve`` activates the row with ``role`` (DENTIST when the role is
        not recognised), whatever its current status. ``reject`` and
        ``remove`` both mark it REMOVED.
        """
        if action not in ACTIONS:
            raise ValidationError("Ação inválida")

        target = await self._memberships.get_by_id(member_id)
        if target is None:
            raise NotFoundError("Membro não encontrado")

        if action == "approve":
            new_role = role if role in ROLES else DEFAULT_ROLE
            await self._guard_last_owner(target, new_role=new_role)
            await self._memberships.update(member_id, status="ACTIVE", role=new_role)
        else:
            await self._guard_last_owner(target, new_role=None)
            await self._memberships.update(member_id, status="REMOVED")

        MEMBERSHIP_TRANSITIONS.labels(action=action).inc()
        logger.info(
            "Membership %s  membership_id=%s org_id=%s", action, member_id, target.org_id
        )
        return _ACTION_MESSAGES[action]

    async def _guard_last_owner(self, target: Membership, *, new_role: str | None) -> None:
        # new_role None means the row is leaving (REMOVED).
        if not (target.is_active and target.role == "OWNER"):
            return
        if new_role == "OWNER":
            return
        owners = await self._memberships.count(
            org_id=target.org_id, role="OWNER", status="ACTIVE"
        )
        if owners <= 1:
            logger.warning(
                "Refused to drop last owner  membership_id=%s org_id=%s",
                target.id,
                target.org_id,
            )
            raise LastOwnerError()

    async def list_user_organizations(self, user_id: UUID) -> list[OrgAccess]:
        """The user's ACTIVE memberships with their organizations, oldest first."""
        memberships = await self._memberships.list_by_user(user_id, ("ACTIVE",))
        orgs = await self._orgs.list_by_ids(m.org_id for m in memberships)
        by_id = {o.id: o for o in orgs}
        return [
            OrgAccess(organization=by_id[m.org_id], membership=m)
            for m in memberships
            if m.org_id in by_id
        ]

    async def primary_membership(self, user_id: UUID) -> OrgAccess | None:
        found = await self.list_user_organizations(user_id)
        return found[0] if found else None

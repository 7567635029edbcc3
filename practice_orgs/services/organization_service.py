"""Organization directory: creation, plan gate, invite codes, deletion."""

from __future__ import annotations

import logging
import secrets
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from uuid import UUID

from practice_orgs.core.metrics import INVITE_CODES_GENERATED, ORGANIZATIONS_CREATED
from practice_orgs.models.organization import Membership, Organization, utcnow
from practice_orgs.repos.membership_repo import MembershipRepo
from practice_orgs.repos.org_repo import OrgRepo
from practice_orgs.repos.subscription_repo import SubscriptionRepo
from practice_orgs.services.errors import NotFoundError, PlanLimitError, ValidationError
from practice_orgs.services.slug import unique_slug

logger = logging.getLogger(__name__)

# No I, O, 0 or 1: codes are read aloud and typed by hand.
INVITE_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
INVITE_CODE_LENGTH = 8
DEFAULT_INVITE_TTL = timedelta(hours=24)
MIN_NAME_LENGTH = 2
MAX_OWNED_ORGANIZATIONS = 1

_MAX_CODE_ATTEMPTS = 5


@dataclass(frozen=True, slots=True)
class InviteCode:
    code: str
    expires_at: datetime


def generate_invite_code() -> str:
    return "".join(
        secrets.choice(INVITE_CODE_ALPHABET) for _ in range(INVITE_CODE_LENGTH)
    )


class OrganizationDirectory:
    def __init__(
        self,
        orgs: OrgRepo,
        memberships: MembershipRepo,
        subscriptions: SubscriptionRepo,
        *,
        invite_ttl: timedelta = DEFAULT_INVITE_TTL,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._orgs = orgs
        self._memberships = memberships
        self._subscriptions = subscriptions
        self._invite_ttl = invite_ttl
        self._clock = clock

    async def get_by_slug(self, slug: str) -> Organization | None:
        return await self._orgs.get_by_slug(slug)

    async def ensure_can_create(self, user_id: UUID) -> None:
        """Plan gate: paid subscription and no organization already owned."""
        subscription = await self._subscriptions.get_by_user(user_id)
        if subscription is None or subscription.is_trial:
            logger.warning("Org creation blocked: user=%s has no paid plan", user_id)
            raise PlanLimitError()

        owned = await self._memberships.count(
            user_id=user_id, role="OWNER", status="ACTIVE"
        )
        if owned >= MAX_OWNED_ORGANIZATIONS:
            logger.warning(
                "Org creation blocked: user=%s already owns %d org(s)", user_id, owned
            )
            raise PlanLimitError("Seu plano permite criar apenas 1 organização.")

    async def create_organization(self, user_id: UUID, name: str) -> Organization:
        """Create an organization with the creator as its ACTIVE OWNER."""
        name = (name or "").strip()
        if len(name) < MIN_NAME_LENGTH:
            raise ValidationError("Nome deve ter pelo menos 2 caracteres")

        slug = await unique_slug(name, self._orgs)
        org = Organization.new(name=name, slug=slug)
        await self._orgs.add(org)
        await self._memberships.add(
            Membership.new(org_id=org.id, user_id=user_id, role="OWNER", status="ACTIVE")
        )

        ORGANIZATIONS_CREATED.inc()
        logger.info("Organization created  org_id=%s slug=%s owner=%s", org.id, slug, user_id)
        return org

    async def get_or_generate_invite_code(
        self, org_id: UUID, force: bool = False
    ) -> InviteCode:
        """Return the live invite code, rotating it when forced, absent or expired."""
        org = await self._orgs.get_by_id(org_id)
        if org is None:
            raise NotFoundError("Organização não encontrada")

        now = self._clock()
        if not force and org.invite_code_valid_at(now):
            return InviteCode(code=org.invite_code, expires_at=org.invite_code_expires_at)  # type: ignore[arg-type]

        if force:
            reason = "forced"
        elif org.invite_code is None:
            reason = "missing"
        else:
            reason = "expired"

        code = await self._draw_unused_code(org_id, now)
        expires_at = now + self._invite_ttl
        updated = await self._orgs.set_invite_code(org_id, code, expires_at)
        if updated is None:
            raise NotFoundError("Organização não encontrada")

        INVITE_CODES_GENERATED.labels(reason=reason).inc()
        logger.info("Invite code rotated  org_id=%s reason=%s", org_id, reason)
        return InviteCode(code=code, expires_at=expires_at)

    async def _draw_unused_code(self, org_id: UUID, now: datetime) -> str:
        code = generate_invite_code()
        for _ in range(_MAX_CODE_ATTEMPTS - 1):
            holder = await self._orgs.find_by_invite_code(code, now)
            if holder is None or holder.id == org_id:
                break
            logger.warning("Invite code collision with org_id=%s, redrawing", holder.id)
            code = generate_invite_code()
        return code

    async def delete_organization(self, org_id: UUID) -> None:
        # Memberships go with it (FK cascade / in-memory cascade).
        await self._orgs.delete(org_id)
        logger.info("Organization deleted  org_id=%s", org_id)

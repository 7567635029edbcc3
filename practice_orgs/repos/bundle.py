"""Groups the repositories a request works against.

Services receive repositories from a RepoBundle instead of importing
module-level singletons, so the same code runs against the in-memory
fakes (dev, tests) or a request-scoped PostgreSQL session.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from practice_orgs.repos.membership_repo import InMemoryMembershipRepo, MembershipRepo
from practice_orgs.repos.org_repo import InMemoryOrgRepo, OrgRepo
from practice_orgs.repos.pg_membership_repo import PgMembershipRepo
from practice_orgs.repos.pg_org_repo import PgOrgRepo
from practice_orgs.repos.pg_subscription_repo import PgSubscriptionRepo
from practice_orgs.repos.pg_user_repo import PgUserRepo
from practice_orgs.repos.subscription_repo import (
    InMemorySubscriptionRepo,
    SubscriptionRepo,
)
from practice_orgs.repos.user_repo import InMemoryUserRepo, UserRepo


@dataclass(frozen=True, slots=True)
class RepoBundle:
    orgs: OrgRepo
    memberships: MembershipRepo
    users: UserRepo
    subscriptions: SubscriptionRepo


def in_memory_bundle() -> RepoBundle:
    memberships = InMemoryMembershipRepo()
    return RepoBundle(
        orgs=InMemoryOrgRepo(memberships),
        memberships=memberships,
        users=InMemoryUserRepo(),
        subscriptions=InMemorySubscriptionRepo(),
    )


def pg_bundle(session: AsyncSession) -> RepoBundle:
    return RepoBundle(
        orgs=PgOrgRepo(session),
        memberships=PgMembershipRepo(session),
        users=PgUserRepo(session),
        subscriptions=PgSubscriptionRepo(session),
    )

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from datetime import timedelta
from typing import Annotated

from fastapi import Depends, Request

from practice_orgs.core.config import SETTINGS
from practice_orgs.db.engine import async_session_factory
from practice_orgs.models.user import SessionUser
from practice_orgs.repos.bundle import RepoBundle, in_memory_bundle, pg_bundle
from practice_orgs.services.access import OrgAccess, resolve_org_access
from practice_orgs.services.errors import AuthenticationError
from practice_orgs.services.membership_service import MembershipRegistry
from practice_orgs.services.organization_service import OrganizationDirectory
from practice_orgs.services.session_resolver import CookieSessionResolver, SessionResolver

logger = logging.getLogger(__name__)

# Used whenever DATABASE_URL is not configured.
memory_repos = in_memory_bundle()


async def get_repos() -> AsyncGenerator[RepoBundle, None]:
    """Request-scoped repositories.

    With a database: one session per request, committed on success and
    rolled back on exception. Without one: the process-wide in-memory bundle.
    """
    if async_session_factory is None:
        yield memory_repos
        return

    async with async_session_factory() as session:
        try:
            yield pg_bundle(session)
            await session.commit()
        except Exception:
            await session.rollback()
            raise


Repos = Annotated[RepoBundle, Depends(get_repos)]


async def require_session(request: Request, repos: Repos) -> SessionUser:
    """Resolve the session cookie to a user, or fail with 401."""
    resolver: SessionResolver = CookieSessionResolver(repos.users)
    user = await resolver.resolve(request.headers)
    if user is None:
        raise AuthenticationError()
    request.state.user_id = str(user.id)
    return user


CurrentUser = Annotated[SessionUser, Depends(require_session)]


def get_directory(repos: Repos) -> OrganizationDirectory:
    return OrganizationDirectory(
        repos.orgs,
        repos.memberships,
        repos.subscriptions,
        invite_ttl=timedelta(hours=SETTINGS.invite_code_ttl_hours),
    )


def get_registry(repos: Repos) -> MembershipRegistry:
    return MembershipRegistry(repos.orgs, repos.memberships, repos.users)


Directory = Annotated[OrganizationDirectory, Depends(get_directory)]
Registry = Annotated[MembershipRegistry, Depends(get_registry)]


def require_org_access(
    roles: frozenset[str] | None = None,
    *,
    no_access_message: str = "Sem acesso",
    role_message: str | None = None,
):
    """Dependency factory: resolve ``{slug}`` to the caller's OrgAccess.

    Usage::

        _require_manager = require_org_access(MANAGER_ROLES)

        @router.get("/organizations/{slug}/invite-code")
        async def get_invite_code(
            access: Annotated[OrgAccess, Depends(_require_manager)],
        ): ...
    """

    async def _resolve(slug: str, user: CurrentUser, repos: Repos) -> OrgAccess:
        return await resolve_org_access(
            repos.orgs,
            repos.memberships,
            user_id=user.id,
            slug=slug,
            roles=roles,
            no_access_message=no_access_message,
            role_message=role_message,
        )

    return _resolve

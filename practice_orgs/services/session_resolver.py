"""Resolve the caller's identity from inbound request headers."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Protocol
from uuid import UUID

import jwt
from starlette.requests import cookie_parser

from practice_orgs.models.user import SessionUser
from practice_orgs.repos.user_repo import UserRepo
from practice_orgs.services import token_service

logger = logging.getLogger(__name__)


class SessionResolver(Protocol):
    async def resolve(self, headers: Mapping[str, str]) -> SessionUser | None: ...


class CookieSessionResolver:
    """Reads the signed session cookie and loads the user it names."""

    def __init__(self, users: UserRepo) -> None:
        self._users = users

    async def resolve(self, headers: Mapping[str, str]) -> SessionUser | None:
        cookies = cookie_parser(headers.get("cookie", ""))
        token = cookies.get(token_service.SESSION_COOKIE)
        if not token:
            return None

        try:
            claims = token_service.decode_session_token(token)
            user_id = UUID(claims["sub"])
        except jwt.ExpiredSignatureError:
            logger.debug("Session cookie expired")
            return None
        except (jwt.InvalidTokenError, ValueError):
            logger.debug("Invalid session cookie")
            return None

        user = await self._users.get_by_id(user_id)
        if user is None:
            logger.warning("Session names unknown user=%s", user_id)
            return None
        return SessionUser.from_user(user)

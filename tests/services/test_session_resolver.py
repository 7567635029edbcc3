from __future__ import annotations

import asyncio
from datetime import UTC, datetime, timedelta
from uuid import uuid4

import jwt

from practice_orgs.models.user import User
from practice_orgs.repos.user_repo import InMemoryUserRepo
from practice_orgs.services import token_service
from practice_orgs.services.session_resolver import CookieSessionResolver


def _setup() -> tuple[InMemoryUserRepo, User]:
    users = InMemoryUserRepo()
    user = User.new(email="dr@example.com", name="Dra. Lima", password_hash="x")
    asyncio.run(users.add(user))
    return users, user


def _cookie(token: str) -> dict[str, str]:
    return {"cookie": f"theme=dark; {token_service.SESSION_COOKIE}={token}"}


def test_resolves_valid_session_cookie() -> None:
    users, user = _setup()
    token = token_service.create_session_token(sub=str(user.id))

    resolved = asyncio.run(CookieSessionResolver(users).resolve(_cookie(token)))

    assert resolved is not None
    assert resolved.id == user.id
    assert resolved.email == "dr@example.com"
    assert resolved.name == "Dra. Lima"


def test_missing_cookie_is_anonymous() -> None:
    users, _ = _setup()
    assert asyncio.run(CookieSessionResolver(users).resolve({})) is None
    assert asyncio.run(CookieSessionResolver(users).resolve({"cookie": "theme=dark"})) is None


def test_garbage_token_is_anonymous() -> None:
    users, _ = _setup()
    assert asyncio.run(CookieSessionResolver(users).resolve(_cookie("not.a.jwt"))) is None


def test_expired_token_is_anonymous() -> None:
    users, user = _setup()
    now = datetime.now(UTC)
    expired = jwt.encode(
        {
            "iss": token_service.ISSUER,
            "aud": token_service.SESSION_AUDIENCE,
            "sub": str(user.id),
            "iat": now - timedelta(days=8),
            "exp": now - timedelta(days=1),
        },
        token_service._private_key,
        algorithm="ES256",
    )
    assert asyncio.run(CookieSessionResolver(users).resolve(_cookie(expired))) is None


def test_unknown_user_is_anonymous() -> None:
    users, _ = _setup()
    token = token_service.create_session_token(sub=str(uuid4()))
    assert asyncio.run(CookieSessionResolver(users).resolve(_cookie(token))) is None

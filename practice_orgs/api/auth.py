"""JSON auth endpoints (/api/auth/sign-up, /sign-in, /sign-out).

Sign-up and sign-in set the HttpOnly ``session`` cookie that every other
endpoint resolves; both return ``{ user: { id, email, name, image } }``.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel

from practice_orgs.api.dependencies import Repos
from practice_orgs.api.ratelimit import require_rate_limit
from practice_orgs.core.config import SETTINGS
from practice_orgs.models.user import User
from practice_orgs.services import auth_service, token_service
from practice_orgs.services.errors import AuthenticationError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


class SignUpIn(BaseModel):
    name: str
    email: str
    password: str


class SignInIn(BaseModel):
    email: str
    password: str


class UserOut(BaseModel):
    id: str
    email: str
    name: str
    image: str | None


class AuthResponse(BaseModel):
    user: UserOut


def _respond(response: Response, user: User) -> AuthResponse:
    response.set_cookie(
        key=token_service.SESSION_COOKIE,
        value=token_service.create_session_token(sub=str(user.id)),
        httponly=True,
        samesite="lax",
        secure=SETTINGS.is_prod,
        path="/",
        max_age=token_service.SESSION_TTL_MIN * 60,
    )
    return AuthResponse(
        user=UserOut(id=str(user.id), email=user.email, name=user.name, image=user.image)
    )


@router.post(
    "/sign-up",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
)
async def sign_up(payload: SignUpIn, response: Response, repos: Repos) -> AuthResponse:
    user = await auth_service.register_user(
        repos.users,
        repos.subscriptions,
        name=payload.name,
        email=payload.email,
        password=payload.password,
    )
    return _respond(response, user)


@router.post(
    "/sign-in",
    response_model=AuthResponse,
    dependencies=[Depends(require_rate_limit())],
)
async def sign_in(payload: SignInIn, response: Response, repos: Repos) -> AuthResponse:
    user = await auth_service.authenticate_user(
        repos.users, payload.email, payload.password
    )
    if user is None:
        logger.warning("Sign-in failed")
        raise AuthenticationError("E-mail ou senha inválidos")

    logger.info("Sign-in succeeded  user_id=%s", user.id)
    return _respond(response, user)


@router.post("/sign-out", status_code=status.HTTP_204_NO_CONTENT)
async def sign_out() -> Response:
    response = Response(status_code=status.HTTP_204_NO_CONTENT)
    response.delete_cookie(token_service.SESSION_COOKIE, path="/")
    return response

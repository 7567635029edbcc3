from __future__ import annotations

import asyncio

import pytest

from practice_orgs.repos.subscription_repo import InMemorySubscriptionRepo
from practice_orgs.repos.user_repo import InMemoryUserRepo
from practice_orgs.services.auth_service import (
    authenticate_user,
    hash_password,
    register_user,
    verify_password,
)
from practice_orgs.services.errors import ConflictError, ValidationError


def _register(users, subscriptions, **overrides):
    kwargs = {"name": "Ana Souza", "email": "Ana@Example.com", "password": "s3cret-pass"}
    kwargs.update(overrides)
    return asyncio.run(register_user(users, subscriptions, **kwargs))


def test_hash_and_verify_password() -> None:
    h = hash_password("s3cret-pass")
    assert h != "s3cret-pass"
    assert verify_password("s3cret-pass", h) is True
    assert verify_password("wrong", h) is False
    assert verify_password("s3cret-pass", "not-a-hash") is False
    assert verify_password("", h) is False


def test_register_user_provisions_trial_subscription() -> None:
    users, subscriptions = InMemoryUserRepo(), InMemorySubscriptionRepo()

    user = _register(users, subscriptions)

    assert user.email == "ana@example.com"
    assert user.name == "Ana Souza"
    sub = asyncio.run(subscriptions.get_by_user(user.id))
    assert sub is not None
    assert sub.status == "TRIAL"
    assert sub.plan_name == "trial"
    assert sub.is_trial


def test_register_user_rejects_duplicate_email() -> None:
    users, subscriptions = InMemoryUserRepo(), InMemorySubscriptionRepo()
    _register(users, subscriptions)

    with pytest.raises(ConflictError):
        _register(users, subscriptions, email="  ANA@example.com ")


@pytest.mark.parametrize(
    "overrides,message",
    [
        ({"email": "not-an-email"}, "E-mail inválido"),
        ({"name": "   "}, "Nome é obrigatório"),
        ({"password": "short"}, "pelo menos 8 caracteres"),
    ],
)
def test_register_user_validates_input(overrides, message) -> None:
    users, subscriptions = InMemoryUserRepo(), InMemorySubscriptionRepo()
    with pytest.raises(ValidationError, match=message):
        _register(users, subscriptions, **overrides)
    assert asyncio.run(users.get_by_email("ana@example.com")) is None


def test_authenticate_user() -> None:
    users, subscriptions = InMemoryUserRepo(), InMemorySubscriptionRepo()
    user = _register(users, subscriptions)

    assert asyncio.run(authenticate_user(users, " ANA@example.com", "s3cret-pass")) == user
    assert asyncio.run(authenticate_user(users, "ana@example.com", "wrong")) is None
    assert asyncio.run(authenticate_user(users, "nobody@example.com", "s3cret-pass")) is None

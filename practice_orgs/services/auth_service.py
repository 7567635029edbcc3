from __future__ import annotations

import logging
import re

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHash, VerificationError, VerifyMismatchError

from practice_orgs.models.subscription import Subscription
from practice_orgs.models.user import User
from practice_orgs.repos.subscription_repo import SubscriptionRepo
from practice_orgs.repos.user_repo import UserRepo
from practice_orgs.services.errors import ConflictError, ValidationError

logger = logging.getLogger(__name__)

_ph = PasswordHasher()

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MIN_PASSWORD_LENGTH = 8


def hash_password(plain_password: str) -> str:
    if not plain_password:
        raise ValueError("password must be non-empty")
    return _ph.hash(plain_password)


def verify_password(plain_password: str, password_hash: str) -> bool:
    if not plain_password or not password_hash:
        return False
    try:
        return _ph.verify(password_hash, plain_password)
    except (VerifyMismatchError, VerificationError, InvalidHash):
        return False


def normalize_email(email: str) -> str:
    return email.strip().lower()


async def authenticate_user(repo: UserRepo, email: str, password: str) -> User | None:
    user = await repo.get_by_email(normalize_email(email))
    if user is None:
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user


async def provision_trial_subscription(
    subscriptions: SubscriptionRepo, user: User
) -> Subscription:
    """Post-registration step: every new account starts on the trial plan."""
    subscription = await subscriptions.ensure_trial(user.id)
    logger.info("Trial subscription provisioned  user_id=%s", user.id)
    return subscription


async def register_user(
    users: UserRepo,
    subscriptions: SubscriptionRepo,
    *,
    name: str,
    email: str,
    password: str,
) -> User:
    """Create the account, then provision its trial subscription.

    The two steps run in order in the caller's unit of work; a failure in
    provisioning rolls the registration back with it.
    """
    email = normalize_email(email)
    name = name.strip()

    if not _EMAIL_RE.match(email):
        raise ValidationError("E-mail inválido")
    if not name:
        raise ValidationError("Nome é obrigatório")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError("A senha deve ter pelo menos 8 caracteres")

    if await users.get_by_email(email) is not None:
        raise ConflictError("Já existe um usuário com este e-mail")

    user = User.new(email=email, name=name, password_hash=hash_password(password))
    try:
        await users.add(user)
    except ValueError:
        # Race condition: another request created the same email
        raise ConflictError("Já existe um usuário com este e-mail") from None

    logger.info("User registered  user_id=%s", user.id)
    await provision_trial_subscription(subscriptions, user)
    return user

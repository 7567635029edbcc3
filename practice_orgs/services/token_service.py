"""Session token creation and validation (ES256).

The session cookie carries a signed JWT naming the user. Both sign-in
(issuance) and the session resolver (validation) go through here so they
share the same key and claims schema.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime, timedelta

import jwt
from cryptography.hazmat.primitives.asymmetric import ec

# Dev/test: ephemeral EC key pair generated on import.
# TODO: load the signing key from SESSION_PRIVATE_KEY so sessions survive restarts.
_private_key = ec.generate_private_key(ec.SECP256R1())
_public_key = _private_key.public_key()

ALGORITHM = "ES256"
ISSUER = "practice-orgs"
SESSION_AUDIENCE = "practice-orgs-session"
SESSION_COOKIE = "session"
SESSION_TTL_MIN = 60 * 24 * 7


def create_session_token(*, sub: str) -> str:
    """Build and sign a session JWT for the session cookie."""
    now = datetime.now(UTC)
    payload = {
        "sub": sub,
        "iss": ISSUER,
        "aud": SESSION_AUDIENCE,
        "exp": now + timedelta(minutes=SESSION_TTL_MIN),
        "iat": now,
        "jti": str(uuid.uuid4()),
    }
    return jwt.encode(payload, _private_key, algorithm=ALGORITHM)


def decode_session_token(token: str) -> dict:
    """Verify a session JWT. Pins algorithm and audience.

    Raises jwt.ExpiredSignatureError, jwt.InvalidTokenError on failure.
    """
    return jwt.decode(
        token,
        _public_key,
        algorithms=[ALGORITHM],
        issuer=ISSUER,
        audience=SESSION_AUDIENCE,
        options={"require": ["sub", "exp", "iat", "jti"]},
    )

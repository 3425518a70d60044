"""JWT helpers and the authenticated principal.

Tokens are issued by the identity service; this module only needs to read
them. ``create_access_token`` exists for local tooling and tests.
"""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Any

from jose import JWTError, jwt

from clinic_scheduler.config import settings


class Role(str, Enum):
    """Actor roles known to the scheduler."""

    PROVIDER = "provider"
    CLIENT = "client"


@dataclass(frozen=True)
class Principal:
    """Already-disambiguated actor behind a request."""

    id: int
    role: Role


def create_access_token(
    data: dict[str, Any],
    expires_delta: timedelta | None = None,
) -> str:
    """
    Create a JWT access token.

    Args:
        data: Payload data to encode
        expires_delta: Optional expiration time delta

    Returns:
        Encoded JWT token
    """
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.now(UTC) + expires_delta
    else:
        expire = datetime.now(UTC) + timedelta(minutes=settings.access_token_expire_minutes)

    to_encode.update(
        {
            "exp": expire,
            "iat": datetime.now(UTC),
            "type": "access",
        }
    )

    encoded_jwt = jwt.encode(
        to_encode,
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )

    return encoded_jwt


def create_principal_token(principal: Principal, expires_delta: timedelta | None = None) -> str:
    """Create an access token carrying a principal's id and role."""
    return create_access_token(
        {"sub": str(principal.id), "role": principal.role.value},
        expires_delta=expires_delta,
    )


def decode_access_token(token: str) -> dict[str, Any] | None:
    """
    Decode and validate a JWT access token.

    Args:
        token: JWT token to decode

    Returns:
        Decoded payload or None if invalid
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )

        # Verify token type
        if payload.get("type") != "access":
            return None

        return payload
    except JWTError:
        return None


def principal_from_payload(payload: dict[str, Any]) -> Principal | None:
    """Read ``sub`` and ``role`` claims into a principal, None if malformed."""
    try:
        return Principal(id=int(payload["sub"]), role=Role(payload["role"]))
    except (KeyError, TypeError, ValueError):
        return None

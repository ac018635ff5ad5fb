"""
Bearer token handling.

Access tokens are HS256 JWTs carrying the user id (``sub``), email and role.
Issuing tokens belongs to the login flow, which lives outside this service;
``create_access_token`` exists for operators and tests.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional
import uuid

import structlog
from jose import JWTError, jwt

from marketplace.config import get_settings
from marketplace.database.models import UserRole

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Identity:
    """The authenticated caller"""
    user_id: uuid.UUID
    email: str
    role: UserRole


def create_access_token(
    user_id: uuid.UUID,
    email: str,
    role: UserRole,
    expires_delta: Optional[timedelta] = None,
) -> str:
    settings = get_settings().security
    expire = datetime.utcnow() + (expires_delta or timedelta(hours=settings.jwt_expiration_hours))
    claims = {
        "sub": str(user_id),
        "email": email,
        "role": role.name,
        "exp": expire,
    }
    return jwt.encode(
        claims,
        settings.jwt_secret_key.get_secret_value(),
        algorithm=settings.jwt_algorithm,
    )


def decode_access_token(token: str) -> Optional[Identity]:
    """
    Verify a token and return the caller it identifies.

    Returns None for bad signatures, expired tokens and malformed claims.
    """
    settings = get_settings().security
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key.get_secret_value(),
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError as e:
        logger.info("Rejected access token", reason=str(e))
        return None

    try:
        return Identity(
            user_id=uuid.UUID(payload["sub"]),
            email=payload.get("email", ""),
            role=UserRole[payload["role"]],
        )
    except (KeyError, ValueError, TypeError) as e:
        logger.info("Rejected access token claims", reason=str(e))
        return None


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Token part of an ``Authorization: Bearer <token>`` header."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()

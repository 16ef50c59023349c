"""Caller identity from bearer session tokens.

Session tokens are HS256 JWTs minted by the identity provider. The core only
reads them: ``sub`` is the caller's user id, and the role comes from either
the boolean ``admin`` / ``security`` custom claims or a ``role`` string.
Claims are trusted as-is; the roster's ``User.role`` is never consulted for
authorization.
"""
import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from admission.core.config import settings
from admission.core.errors import Unauthenticated
from admission.models.user import Role

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Caller:
    """An authenticated caller and the single role its claims grant."""

    uid: str
    role: Role = Role.USER


def role_from_claims(claims: dict[str, Any]) -> Role:
    """Collapse custom claims into one role; admin wins over security."""
    if claims.get("admin") is True:
        return Role.ADMIN
    if claims.get("security") is True:
        return Role.SECURITY
    try:
        return Role(claims.get("role", Role.USER.value))
    except ValueError:
        return Role.USER


def create_access_token(
    uid: str,
    role: Role = Role.USER,
    expires_delta: timedelta | None = None,
) -> str:
    """Mint a session token. Used by scripts/issue_token.py and the tests."""
    now = datetime.now(UTC)
    expire = now + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    payload = {
        "sub": uid,
        "iat": now,
        "exp": expire,
        "role": role.value,
        "admin": role is Role.ADMIN,
        "security": role is Role.SECURITY,
    }
    return jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Caller:
    try:
        claims = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as e:
        logger.info(f"Rejected session token: {e}")
        raise Unauthenticated("Could not validate credentials") from None

    uid = claims.get("sub")
    if not uid:
        raise Unauthenticated("Invalid authentication payload")
    return Caller(uid=uid, role=role_from_claims(claims))


def get_caller(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Caller:
    """Dependency resolving the caller from the Authorization header."""
    if credentials is None:
        raise Unauthenticated("You must be logged in to perform this action")
    return decode_access_token(credentials.credentials)

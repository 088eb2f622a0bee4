"""
Bearer token utilities.

Tokens are issued by the authentication service; this backend only needs to
read the caller's id and claimed roles from them. ``create_access_token`` is
kept for operator tooling and tests.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional, Any, Iterable
from jose import jwt, JWTError
from .config import settings


def create_access_token(
    subject: str,
    roles: Iterable[str] = (),
    expires_delta: Optional[timedelta] = None,
    additional_claims: Optional[dict[str, Any]] = None
) -> str:
    """Create a JWT access token carrying the subject's roles."""
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(
            minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES
        )

    to_encode = {
        "exp": expire,
        "sub": str(subject),
        "iat": datetime.now(timezone.utc),
        "type": "auth",
        "roles": [str(getattr(role, "value", role)) for role in roles],
    }

    if additional_claims:
        to_encode.update(additional_claims)

    return jwt.encode(
        to_encode,
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM
    )


def decode_token(token: str) -> Optional[dict]:
    """Decode and validate a JWT token."""
    try:
        return jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM]
        )
    except JWTError:
        return None


def read_claims(token: str) -> Optional[tuple[str, list[str]]]:
    """
    Return ``(subject, roles)`` from an auth token.

    None for anything that is not a valid, unexpired ``auth`` token with a
    subject. Roles are returned as raw strings; unknown ones are filtered
    by ``ActorContext.from_claims``.
    """
    payload = decode_token(token)
    if payload is None or payload.get("type") != "auth" or not payload.get("sub"):
        return None
    roles = payload.get("roles") or []
    if not isinstance(roles, list):
        return None
    return payload["sub"], [str(role) for role in roles]

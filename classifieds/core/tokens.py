"""
Bearer credentials (HS256 JWT).

Claims:
- id: user id
- role: "customer" or "admin"
- email: informational, never used for authorization
- iat/exp: issued/expiry
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from .config import get_settings


class TokenError(Exception):
    """Raised when a bearer credential cannot be verified."""


@dataclass(frozen=True)
class Caller:
    """Identity decoded from a verified bearer credential."""

    id: str
    role: str
    email: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def create_access_token(user_id: str, role: str, email: str | None = None, *, ttl_seconds: int | None = None) -> str:
    settings = get_settings()
    now = datetime.now(timezone.utc)
    ttl = ttl_seconds if ttl_seconds is not None else settings.jwt_ttl_seconds
    payload = {
        "id": user_id,
        "role": role,
        "iat": now,
        "exp": now + timedelta(seconds=ttl),
    }
    if email:
        payload["email"] = email
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Caller:
    settings = get_settings()
    try:
        claims = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.PyJWTError as exc:
        raise TokenError(str(exc)) from exc
    user_id = claims.get("id")
    if not user_id or not isinstance(user_id, str):
        raise TokenError("Invalid token payload")
    role = claims.get("role") or "customer"
    return Caller(id=user_id, role=str(role), email=claims.get("email"))


def bearer_token(header_value: str | None) -> str | None:
    """Extract the token from an ``Authorization: Bearer <token>`` header."""
    value = (header_value or "").strip()
    if not value:
        return None
    scheme, _, rest = value.partition(" ")
    if scheme.lower() == "bearer":
        return rest.strip() or None
    return value

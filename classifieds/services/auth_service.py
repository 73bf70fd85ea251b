"""
Registration, login and user directory use cases.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Mapping, Optional

import structlog
from sqlalchemy.exc import IntegrityError

from classifieds.core.errors import ServiceError
from classifieds.core.security import hash_password, needs_rehash, verify_password
from classifieds.core.tokens import Caller, create_access_token
from classifieds.db.models import User
from classifieds.domain import policy
from classifieds.repositories.sql_repository import SQLRepository

logger = structlog.get_logger(__name__)

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
PASSWORD_MIN_LENGTH = 8


class AuthError(ServiceError):
    """Base class for authentication-related exceptions."""


class RegistrationError(AuthError):
    def __init__(self, message: str):
        super().__init__(message, "invalid", 400)


class AccountExistsError(AuthError):
    def __init__(self, message: str = "An account with this email already exists"):
        super().__init__(message, "account_exists", 409)


class InvalidCredentialsError(AuthError):
    def __init__(self, message: str = "Invalid email or password"):
        super().__init__(message, "invalid_credentials", 401)


class BlockedUserError(AuthError):
    def __init__(self, message: str = "This account has been blocked"):
        super().__init__(message, "blocked", 403)


@dataclass
class LoginSuccess:
    token: str
    user: User


def _text(payload: Mapping[str, Any], *keys: str) -> str:
    for key in keys:
        value = payload.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return ""


@dataclass
class AuthService:
    """Handles registration, login and user lookups."""

    def __post_init__(self):
        self.repository = SQLRepository()

    def register(self, payload: Mapping[str, Any]) -> User:
        email = _text(payload, "email").lower()
        password = payload.get("password") if isinstance(payload.get("password"), str) else ""
        first_name = _text(payload, "firstName", "first_name")
        last_name = _text(payload, "lastName", "last_name")
        if not email or not password or not first_name or not last_name:
            raise RegistrationError("email, password, firstName and lastName are required")
        if not EMAIL_RE.match(email):
            raise RegistrationError("Invalid email address")
        if len(password) < PASSWORD_MIN_LENGTH:
            raise RegistrationError(f"Password must be at least {PASSWORD_MIN_LENGTH} characters")
        if self.repository.get_user_by_email(email):
            raise AccountExistsError()
        try:
            user = self.repository.create_user(
                email=email,
                password_hash=hash_password(password),
                first_name=first_name,
                last_name=last_name,
                name=_text(payload, "name") or None,
                phone_number=_text(payload, "phoneNumber", "phone_number") or None,
            )
        except IntegrityError as exc:
            raise AccountExistsError() from exc
        logger.info("auth.registered", user_id=user.id)
        return user

    def login(self, email: str, password: str) -> LoginSuccess:
        email = (email or "").strip().lower()
        user = self.repository.get_user_by_email(email) if email else None
        if not user or not verify_password(password or "", user.password_hash):
            logger.info("auth.login_failed", email=email)
            raise InvalidCredentialsError()
        if user.is_blocked:
            logger.info("auth.login_blocked", user_id=user.id)
            raise BlockedUserError()
        if needs_rehash(user.password_hash):
            self.repository.update_user_password(user.id, hash_password(password))
        token = create_access_token(user.id, user.role, user.email)
        logger.info("auth.login", user_id=user.id, role=user.role)
        return LoginSuccess(token=token, user=user)

    def profile(self, caller: Optional[Caller]) -> User:
        if caller is None:
            raise AuthError("You are not authenticated!", "unauthorized", 401)
        user = self.repository.get_user(caller.id)
        if not user:
            raise AuthError("User not found", "not_found", 404)
        return user

    def list_users(self, caller: Optional[Caller]) -> list[User]:
        if caller is None:
            raise AuthError("You are not authenticated!", "unauthorized", 401)
        if not policy.can_list_users(caller):
            raise AuthError("Access denied. Admins only.", "forbidden", 403)
        return self.repository.list_users()

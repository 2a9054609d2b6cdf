from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.datetime_utils import now_local
from ..common.validators import optional_text, require_enum, require_non_empty, require_password_strength
from ..core.constants import (
    LOGIN_THROTTLE_MAX_FAILURES,
    LOGIN_THROTTLE_MINUTES,
    REMEMBER_ME_DAYS,
    TOKEN_HOURS,
)
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, NotFoundError, TooManyAttemptsError, ValidationError
from .model import User
from .repository import UserRepository
from .session_repository import LoginAttemptRepository, SessionRepository
from .tokens import TokenIssuer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoginResult:
    token: str
    user: User
    expires_in: str

    def to_dict(self) -> dict:
        return {
            "token": self.token,
            "user": {
                "id": self.user.user_id,
                "username": self.user.username,
                "role": self.user.role.value,
                "real_name": self.user.real_name,
                "email": self.user.email,
                "phone": self.user.phone,
            },
            "expiresIn": self.expires_in,
        }


class AuthService:
    """Use cases: login/logout, token verification, own profile and password."""

    def __init__(
        self,
        users: UserRepository,
        sessions: SessionRepository,
        attempts: LoginAttemptRepository,
        tokens: TokenIssuer,
    ):
        self._users = users
        self._sessions = sessions
        self._attempts = attempts
        self._tokens = tokens

    def _check_throttle(self, username: str, ip_address: Optional[str], now: datetime) -> None:
        since = now - timedelta(minutes=LOGIN_THROTTLE_MINUTES)
        failures = self._attempts.count_recent_failures(username=username, ip_address=ip_address, since=since)
        if failures >= LOGIN_THROTTLE_MAX_FAILURES:
            logger.warning("Login throttled for %r from %s (%d recent failures)", username, ip_address, failures)
            raise TooManyAttemptsError(
                f"Too many failed logins, try again in {LOGIN_THROTTLE_MINUTES} minutes"
            )

    def login(
        self,
        username: str,
        password: str,
        *,
        remember_me: bool = False,
        ip_address: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> LoginResult:
        now = now or now_local()
        if not isinstance(username or "", str) or not isinstance(password or "", str):
            raise ValidationError("Username and password must be text")
        username = (username or "").strip()

        self._check_throttle(username, ip_address, now)

        if not username or not password:
            raise ValidationError("Username and password are required")

        user = self._users.get_by_username(username)
        if not user or not user.is_active:
            self._attempts.record(username=username, ip_address=ip_address, success=False, at=now)
            logger.warning("Failed login for unknown or disabled user %r from %s", username, ip_address)
            raise AuthenticationError("Invalid username or password")

        try:
            ok = check_password_hash(user.password_hash, password)
        except (TypeError, ValueError):
            # e.g. placeholder hashes like 'CHANGE_ME' or corrupted values
            ok = False

        if not ok:
            self._attempts.record(username=username, ip_address=ip_address, success=False, at=now)
            logger.warning("Failed login for %r from %s: bad password", username, ip_address)
            raise AuthenticationError("Invalid username or password")

        if remember_me:
            lifetime, expires_in = timedelta(days=REMEMBER_ME_DAYS), f"{REMEMBER_ME_DAYS}d"
        else:
            lifetime, expires_in = timedelta(hours=TOKEN_HOURS), f"{TOKEN_HOURS}h"

        token = self._tokens.issue(user.user_id, expires_in=lifetime)

        self._users.touch_last_login(user.user_id, at=now)
        self._attempts.record(username=username, ip_address=ip_address, success=True, at=now)
        self._sessions.purge_expired(now=now)
        self._sessions.create_session(user_id=user.user_id, token=token, expires_at=now + lifetime)

        logger.info("User %r logged in (remember_me=%s)", username, remember_me)
        return LoginResult(token=token, user=user, expires_in=expires_in)

    def logout(self, token: Optional[str]) -> None:
        if token:
            self._sessions.delete_by_token(token)

    def authenticate_token(self, token: Optional[str], *, now: Optional[datetime] = None) -> User:
        if not token:
            raise AuthenticationError("Access token missing, please log in")

        user_id = self._tokens.decode_user_id(token)

        if not self._sessions.get_active(token, now=now or now_local()):
            raise AuthenticationError("Session has ended, please log in again")

        user = self._users.get_by_id(user_id)
        if not user or not user.is_active:
            raise AuthenticationError("User does not exist or is disabled")
        return user

    def get_profile(self, user_id: int) -> User:
        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    def update_profile(self, user_id: int, *, real_name, email=None, phone=None) -> None:
        real_name = require_non_empty(real_name, "Real name")
        if not self._users.update_profile(
            user_id, real_name=real_name, email=optional_text(email), phone=optional_text(phone)
        ):
            raise NotFoundError("User not found")

    def change_password(self, user_id: int, *, current_password, new_password) -> None:
        if not current_password or not new_password:
            raise ValidationError("Current password and new password are required")
        if not isinstance(current_password, str):
            raise ValidationError("Current password is incorrect")
        require_password_strength(new_password)

        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        try:
            ok = check_password_hash(user.password_hash, current_password)
        except (TypeError, ValueError):
            ok = False
        if not ok:
            raise ValidationError("Current password is incorrect")

        self._users.update_password(user_id, password_hash=generate_password_hash(new_password))
        revoked = self._sessions.delete_for_user(user_id)
        logger.info("Password changed for user %s, %d session(s) revoked", user_id, revoked)


class UserService:
    """Use cases: manage back-office accounts (admin)."""

    def __init__(self, users: UserRepository):
        self._users = users

    def register(self, *, username, password, role, real_name, email=None, phone=None) -> User:
        if not username or not password or not role or not real_name:
            raise ValidationError("Username, password, role and real name are required")

        username = require_non_empty(username, "Username")
        real_name = require_non_empty(real_name, "Real name")
        role = require_enum(Role, role, "Role")
        require_password_strength(password)

        if self._users.get_by_username(username):
            raise ValidationError("Username already exists")

        user_id = self._users.create_user(
            username=username,
            password_hash=generate_password_hash(password),
            role=role,
            real_name=real_name,
            email=optional_text(email),
            phone=optional_text(phone),
        )
        logger.info("Created %s account %r (id=%s)", role.value, username, user_id)
        return self._users.get_by_id(user_id) or User(
            user_id=user_id,
            username=username,
            password_hash="",
            role=role,
            real_name=real_name,
            email=optional_text(email),
            phone=optional_text(phone),
        )

    def list_users(self):
        return list(self._users.list_all())

    def set_status(self, *, current_user_id: int, user_id: int, is_active: bool) -> None:
        if int(user_id) == int(current_user_id):
            raise ValidationError("You cannot change your own status")
        if not self._users.get_by_id(user_id):
            raise NotFoundError("User not found")
        self._users.set_active(user_id, is_active=is_active)
        logger.info("User %s %s", user_id, "enabled" if is_active else "disabled")

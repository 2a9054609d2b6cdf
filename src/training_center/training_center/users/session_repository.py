from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol

from .model import UserSession


class SessionRepository(Protocol):
    def create_session(self, *, user_id: int, token: str, expires_at: datetime) -> int:
        raise NotImplementedError

    def get_active(self, token: str, *, now: datetime) -> Optional[UserSession]:
        raise NotImplementedError

    def delete_by_token(self, token: str) -> bool:
        raise NotImplementedError

    def delete_for_user(self, user_id: int) -> int:
        raise NotImplementedError

    def purge_expired(self, *, now: datetime) -> int:
        raise NotImplementedError


class LoginAttemptRepository(Protocol):
    def record(self, *, username: str, ip_address: Optional[str], success: bool, at: datetime) -> None:
        raise NotImplementedError

    def count_recent_failures(self, *, username: str, ip_address: Optional[str], since: datetime) -> int:
        raise NotImplementedError

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Domain entity: back-office user.

    Note: plain data object, no DB access code here.
    """

    user_id: int
    username: str
    password_hash: str
    role: Role
    real_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    is_active: bool = True
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None

    def to_public(self) -> dict:
        return {
            "id": self.user_id,
            "username": self.username,
            "role": self.role.value,
            "real_name": self.real_name,
            "email": self.email,
            "phone": self.phone,
            "is_active": self.is_active,
            "last_login": self.last_login,
            "created_at": self.created_at,
        }

    def to_brief(self) -> dict:
        return {
            "id": self.user_id,
            "username": self.username,
            "role": self.role.value,
            "real_name": self.real_name,
        }


@dataclass(frozen=True)
class UserSession:
    session_id: int
    user_id: int
    token: str
    expires_at: datetime

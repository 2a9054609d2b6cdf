from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import Role
from .model import User


class UserRepository(Protocol):
    """Repository interface for User.

    Note (DIP): the service layer depends on this interface, not on a concrete DB.
    """

    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_username(self, username: str) -> Optional[User]:
        raise NotImplementedError

    def create_user(
        self,
        *,
        username: str,
        password_hash: str,
        role: Role,
        real_name: str,
        email: Optional[str],
        phone: Optional[str],
    ) -> int:
        raise NotImplementedError

    def update_profile(self, user_id: int, *, real_name: str, email: Optional[str], phone: Optional[str]) -> bool:
        raise NotImplementedError

    def update_password(self, user_id: int, *, password_hash: str) -> bool:
        raise NotImplementedError

    def set_active(self, user_id: int, *, is_active: bool) -> bool:
        raise NotImplementedError

    def touch_last_login(self, user_id: int, *, at: datetime) -> None:
        raise NotImplementedError

    def list_all(self) -> Sequence[User]:
        raise NotImplementedError

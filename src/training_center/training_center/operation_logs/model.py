from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class OperationLog:
    log_id: int
    operation_type: str
    target_id: int
    target_type: str
    description: Optional[str]
    user_id: Optional[int]
    created_at: Optional[datetime] = None
    username: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.log_id,
            "operation_type": self.operation_type,
            "target_id": self.target_id,
            "target_type": self.target_type,
            "description": self.description,
            "user_id": self.user_id,
            "username": self.username,
            "created_at": self.created_at,
        }

from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import OperationLog


class OperationLogRepository(Protocol):
    def create(
        self,
        *,
        operation_type: str,
        target_id: int,
        target_type: str,
        description: Optional[str],
        user_id: Optional[int],
    ) -> int:
        raise NotImplementedError

    def list_recent(self, *, limit: int) -> Sequence[OperationLog]:
        raise NotImplementedError

    def count_by_type(self) -> Sequence[dict]:
        raise NotImplementedError

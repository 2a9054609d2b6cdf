from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from ..common.validators import clamp_int
from ..core.constants import DEFAULT_LOG_LIMIT
from ..core.enums import OperationType
from .repository import OperationLogRepository

logger = logging.getLogger(__name__)

MAX_LOG_LIMIT = 500


def describe(operation_type: OperationType, *, body: Mapping[str, Any], target_id: Any, username: Optional[str]) -> str:
    """Human readable one-liner stored next to the log row."""
    op = OperationType(operation_type)
    if op == OperationType.CREATE_STUDENT:
        return f"Created student: {body.get('name')}"
    if op == OperationType.UPDATE_STUDENT:
        return f"Updated student: {body.get('name') or f'ID {target_id}'}"
    if op == OperationType.DELETE_STUDENT:
        return f"Deleted student: ID {target_id}"
    if op == OperationType.ADD_INCOME:
        return f"Recharged {body.get('amount')} for {body.get('hours')} hour(s)"
    if op == OperationType.DELETE_INCOME:
        return f"Deleted income record: ID {target_id}"
    if op == OperationType.ADD_CLASS:
        return f"Recorded class: {body.get('hours_used')} hour(s)"
    if op == OperationType.CREATE_DEDUCTION_CONFIG:
        return f"Created deduction config: {body.get('name')}"
    if op == OperationType.UPDATE_DEDUCTION_CONFIG:
        return f"Updated deduction config: {body.get('name') or f'ID {target_id}'}"
    if op == OperationType.CREATE_STUDENT_DEDUCTION:
        return f"Assigned deductions to student ID {target_id}"
    if op == OperationType.CREATE_DEDUCTION_DETAIL:
        return f"Created deduction detail: {body.get('deduction_type')}"
    if op == OperationType.UPDATE_DEDUCTION_DETAIL:
        return f"Updated deduction detail: ID {target_id}"
    if op == OperationType.DELETE_DEDUCTION_DETAIL:
        return f"Deleted deduction detail: ID {target_id}"
    if op == OperationType.LOGIN:
        return f"User logged in: {username}"
    if op == OperationType.LOGOUT:
        return f"User logged out: {username}"
    return op.value


class OperationLogService:
    """Audit trail of mutating requests."""

    def __init__(self, logs: OperationLogRepository):
        self._logs = logs

    def record(
        self,
        *,
        operation_type: OperationType,
        target_id: int,
        target_type: str,
        description: Optional[str],
        user_id: Optional[int],
    ) -> Optional[int]:
        # Never let the audit trail break the request it describes.
        try:
            return self._logs.create(
                operation_type=OperationType(operation_type).value,
                target_id=int(target_id or 0),
                target_type=target_type,
                description=description,
                user_id=user_id,
            )
        except Exception:
            logger.exception("Failed to write operation log %s for target %s", operation_type, target_id)
            return None

    def recent(self, *, limit: Any = None) -> dict:
        limit = clamp_int(limit, default=DEFAULT_LOG_LIMIT, minimum=1, maximum=MAX_LOG_LIMIT)
        return {
            "logs": [log.to_dict() for log in self._logs.list_recent(limit=limit)],
            "counts": list(self._logs.count_by_type()),
        }

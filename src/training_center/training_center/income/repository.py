from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional, Protocol

from ..students.model import IncomeRecord


class ReversalOutcome(str, Enum):
    DELETED = "deleted"
    MISSING = "missing"
    INSUFFICIENT_HOURS = "insufficient_hours"


class IncomeRepository(Protocol):
    def get_by_id(self, income_id: int) -> Optional[IncomeRecord]:
        raise NotImplementedError

    def has_classes_after(self, student_id: int, *, since: datetime) -> bool:
        raise NotImplementedError

    def delete_and_reverse_hours(self, income: IncomeRecord) -> ReversalOutcome:
        """Delete the income and take its hours back off the student.

        Nothing changes unless the outcome is DELETED.
        """
        raise NotImplementedError

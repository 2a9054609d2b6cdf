from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Optional

from ..common.datetime_utils import now_local
from ..core.constants import INCOME_DELETE_WINDOW_HOURS
from ..core.exceptions import NotFoundError, ValidationError
from ..students.repository import StudentRepository
from .repository import IncomeRepository, ReversalOutcome

logger = logging.getLogger(__name__)


class IncomeService:
    def __init__(self, income: IncomeRepository, students: StudentRepository):
        self._income = income
        self._students = students

    def delete_income(self, income_id: int, *, now: Optional[datetime] = None) -> dict:
        """Undo a recharge: drop the income row and take its hours back.

        Only recent records with no classes recorded after them can be undone.
        """
        now = now or now_local()
        income = self._income.get_by_id(income_id)
        if not income:
            raise NotFoundError("Income record not found")

        created_at = income.created_at or datetime.combine(income.date, datetime.min.time())
        if now - created_at > timedelta(hours=INCOME_DELETE_WINDOW_HOURS):
            raise ValidationError(
                f"Only income records created within the last {INCOME_DELETE_WINDOW_HOURS} hours can be deleted"
            )

        if self._income.has_classes_after(income.student_id, since=created_at):
            raise ValidationError("Classes were recorded after this income, it cannot be deleted")

        student = self._students.get_by_id(income.student_id)
        if not student:
            raise NotFoundError("Student not found")

        insufficient = ValidationError(
            "Student does not have enough remaining hours to reverse this income",
            data={"remaining_hours": student.remaining_hours, "required_hours": income.hours},
        )
        if student.remaining_hours < income.hours:
            raise insufficient

        outcome = self._income.delete_and_reverse_hours(income)
        if outcome == ReversalOutcome.MISSING:
            raise NotFoundError("Income record not found")
        if outcome == ReversalOutcome.INSUFFICIENT_HOURS:
            raise insufficient

        logger.info(
            "Deleted income %s of student %s (amount=%.2f, hours=%d)",
            income.income_id, income.student_id, income.amount, income.hours,
        )
        return {
            "deleted_income": {
                "id": income.income_id,
                "amount": income.amount,
                "date": income.date,
                "hours": income.hours,
            },
            "updated_student": {
                "id": student.student_id,
                "name": student.name,
                "remaining_hours": student.remaining_hours - income.hours,
            },
        }

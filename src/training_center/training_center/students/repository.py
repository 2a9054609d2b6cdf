from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from .model import ClassRecord, IncomeRecord, Student


class StudentRepository(Protocol):
    def get_by_id(self, student_id: int) -> Optional[Student]:
        raise NotImplementedError

    def get_by_phone(self, phone: str) -> Optional[Student]:
        raise NotImplementedError

    def list_all(self) -> Sequence[Student]:
        raise NotImplementedError

    def create_with_deductions(self, *, name: str, phone: str, applied_at: datetime) -> tuple[int, int]:
        """Insert the student and attach every active `once` config.

        Returns (student_id, number of attached configs).
        """
        raise NotImplementedError

    def recharge(self, student_id: int, *, amount: float, hours: int, on: date, applied_at: datetime) -> tuple[int, int]:
        """Add hours, insert income and bump `multiple` assignments.

        Returns (income_id, number of bumped assignments).
        """
        raise NotImplementedError

    def consume_hours(self, student_id: int, *, hours: int, on: date, at: datetime) -> Optional[int]:
        """Subtract hours and insert a class row; None when hours are insufficient."""
        raise NotImplementedError

    def delete_cascade(self, student_id: int) -> bool:
        raise NotImplementedError

    def list_income(self, student_id: int) -> Sequence[IncomeRecord]:
        raise NotImplementedError

    def list_classes(self, student_id: int) -> Sequence[ClassRecord]:
        raise NotImplementedError

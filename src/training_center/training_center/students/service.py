from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import now_local
from ..common.validators import require_non_empty, require_positive_int, require_positive_number
from ..core.exceptions import InsufficientHoursError, NotFoundError, ValidationError
from .model import Student
from .repository import StudentRepository

logger = logging.getLogger(__name__)


class StudentService:
    """Use cases: enrol students, sell class-hours, record classes."""

    def __init__(self, students: StudentRepository):
        self._students = students

    def _require_student(self, student_id: int) -> Student:
        student = self._students.get_by_id(student_id)
        if not student:
            raise NotFoundError("Student not found")
        return student

    def create_student(self, *, name, phone, now: Optional[datetime] = None) -> dict:
        if not name or not phone:
            raise ValidationError("Name and phone are required")
        name = require_non_empty(name, "Name")
        phone = require_non_empty(phone, "Phone")

        if self._students.get_by_phone(phone):
            raise ValidationError("Phone number already exists")

        now = now or now_local()
        student_id, applied = self._students.create_with_deductions(name=name, phone=phone, applied_at=now)
        logger.info("Created student %s (%s), %d one-time deduction(s) attached", student_id, name, applied)
        return {
            "id": student_id,
            "name": name,
            "phone": phone,
            "remaining_hours": 0,
            "applied_deductions": applied,
        }

    def recharge(self, student_id: int, *, amount, hours, now: Optional[datetime] = None) -> dict:
        if amount in (None, "") or hours in (None, ""):
            raise ValidationError("Amount and hours are required")
        amount = require_positive_number(amount, "Amount")
        hours = require_positive_int(hours, "Hours")

        self._require_student(student_id)

        now = now or now_local()
        today = now.date()
        income_id, applied = self._students.recharge(
            student_id, amount=amount, hours=hours, on=today, applied_at=now
        )
        logger.info(
            "Recharged student %s: amount=%.2f hours=%d income=%s, %d recurring deduction(s) applied",
            student_id, amount, hours, income_id, applied,
        )
        return {
            "student_id": int(student_id),
            "id": income_id,
            "amount": amount,
            "hours": hours,
            "date": today,
            "applied_deductions": applied,
        }

    def consume(self, student_id: int, *, hours_used, now: Optional[datetime] = None) -> dict:
        hours_used = require_positive_int(hours_used, "Hours used")
        student = self._require_student(student_id)

        if student.remaining_hours < hours_used:
            raise InsufficientHoursError(
                "Not enough remaining hours",
                remaining_hours=student.remaining_hours,
                requested_hours=hours_used,
            )

        now = now or now_local()
        class_id = self._students.consume_hours(student_id, hours=hours_used, on=now.date(), at=now)
        if class_id is None:
            # Hours changed between the check and the update.
            current = self._require_student(student_id)
            raise InsufficientHoursError(
                "Not enough remaining hours",
                remaining_hours=current.remaining_hours,
                requested_hours=hours_used,
            )

        logger.info("Student %s consumed %d hour(s), class=%s", student_id, hours_used, class_id)
        return {
            "student_id": int(student_id),
            "id": class_id,
            "hours_used": hours_used,
            "remaining_hours": student.remaining_hours - hours_used,
            "date": now.date(),
        }

    def list_students(self) -> list[Student]:
        return list(self._students.list_all())

    def get_detail(self, student_id: int) -> dict:
        student = self._require_student(student_id)
        return {
            "student": student.to_dict(),
            "income_records": [r.to_dict() for r in self._students.list_income(student_id)],
            "class_records": [r.to_dict() for r in self._students.list_classes(student_id)],
        }

    def delete_student(self, student_id: int) -> dict:
        student = self._require_student(student_id)
        if not self._students.delete_cascade(student_id):
            raise NotFoundError("Student not found")
        logger.info("Deleted student %s (%s) with all related records", student_id, student.name)
        return {"student_id": int(student_id), "deleted_student": student.to_dict()}

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional


@dataclass(frozen=True)
class Student:
    student_id: int
    name: str
    phone: str
    remaining_hours: int
    created_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "id": self.student_id,
            "name": self.name,
            "phone": self.phone,
            "remaining_hours": self.remaining_hours,
            "created_at": self.created_at,
        }


@dataclass(frozen=True)
class IncomeRecord:
    income_id: int
    student_id: int
    amount: float
    hours: int
    date: date
    created_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "id": self.income_id,
            "student_id": self.student_id,
            "amount": self.amount,
            "hours": self.hours,
            "date": self.date,
            "created_at": self.created_at,
        }


@dataclass(frozen=True)
class ClassRecord:
    class_id: int
    student_id: int
    hours_used: int
    date: date
    created_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "id": self.class_id,
            "student_id": self.student_id,
            "hours_used": self.hours_used,
            "date": self.date,
            "created_at": self.created_at,
        }

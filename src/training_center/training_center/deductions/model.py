from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from ..core.enums import DeductionFrequency, DeductionType, DetailType


@dataclass(frozen=True)
class DeductionConfig:
    config_id: int
    name: str
    type: DeductionType
    value: float
    description: Optional[str]
    frequency: DeductionFrequency
    is_active: bool = True

    def to_dict(self) -> dict:
        return {
            "id": self.config_id,
            "name": self.name,
            "type": self.type.value,
            "value": self.value,
            "description": self.description,
            "frequency": self.frequency.value,
            "is_active": self.is_active,
        }


@dataclass(frozen=True)
class StudentDeduction:
    """An active config as seen from one student (attached or not)."""

    config: DeductionConfig
    student_deduction_id: Optional[int] = None
    applied_count: int = 0
    last_applied_date: Optional[datetime] = None

    def to_dict(self) -> dict:
        data = self.config.to_dict()
        data["student_deduction_id"] = self.student_deduction_id
        data["applied_count"] = self.applied_count
        data["last_applied_date"] = self.last_applied_date
        return data


@dataclass(frozen=True)
class DeductionDetail:
    detail_id: int
    student_id: int
    deduction_type: DetailType
    amount: float
    description: Optional[str]
    date: date
    operator: str
    related_class_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    # Joined, read-only.
    student_name: Optional[str] = None
    student_phone: Optional[str] = None
    related_class_hours: Optional[int] = None
    related_class_date: Optional[date] = None

    def to_dict(self) -> dict:
        return {
            "id": self.detail_id,
            "student_id": self.student_id,
            "deduction_type": self.deduction_type.value,
            "amount": self.amount,
            "description": self.description,
            "date": self.date,
            "operator": self.operator,
            "related_class_id": self.related_class_id,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "student_name": self.student_name,
            "student_phone": self.student_phone,
            "related_class_hours": self.related_class_hours,
            "related_class_date": self.related_class_date,
        }


@dataclass(frozen=True)
class DetailInput:
    """Validated payload for creating/updating a deduction detail."""

    deduction_type: DetailType
    amount: float
    description: Optional[str]
    date: date
    operator: str
    related_class_id: Optional[int] = None


@dataclass(frozen=True)
class DetailFilter:
    student_id: Optional[int] = None
    deduction_type: Optional[DetailType] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


@dataclass(frozen=True)
class Page:
    items: list = field(default_factory=list)
    page: int = 1
    limit: int = 20
    total: int = 0

    @property
    def pages(self) -> int:
        return (self.total + self.limit - 1) // self.limit if self.limit else 0

    def to_dict(self) -> dict:
        return {
            "list": [item.to_dict() for item in self.items],
            "pagination": {"page": self.page, "limit": self.limit, "total": self.total, "pages": self.pages},
        }

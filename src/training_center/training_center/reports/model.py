from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class StudentFigures:
    """Lifetime totals of one student used by the profit formulas."""

    total_income: float = 0.0
    first_income_amount: float = 0.0
    total_hours_used: int = 0
    manual_deductions: float = 0.0


@dataclass(frozen=True)
class PeriodFigures:
    """Centre-wide totals within a period."""

    total_income: float = 0.0
    income_count: int = 0
    total_hours_used: int = 0
    class_count: int = 0
    new_students: int = 0


@dataclass(frozen=True)
class DeductionLine:
    config_id: int
    name: str
    type: str
    value: float
    frequency: str
    amount: float
    calculation: str
    applied_count: Optional[int] = None
    last_applied_date: Optional[datetime] = None
    applied_info: Optional[str] = None

    def to_dict(self) -> dict:
        data = {
            "id": self.config_id,
            "name": self.name,
            "type": self.type,
            "value": self.value,
            "frequency": self.frequency,
            "calculation": self.calculation,
            "amount": self.amount,
        }
        if self.applied_info is not None:
            data["applied_count"] = self.applied_count
            data["last_applied_date"] = self.last_applied_date
            data["applied_info"] = self.applied_info
        return data


@dataclass(frozen=True)
class ProfitSummary:
    total_income: float
    total_hours: int
    lines: list[DeductionLine] = field(default_factory=list)
    total_manual_deductions: float = 0.0

    @property
    def total_once_deductions(self) -> float:
        return sum(line.amount for line in self.lines if line.frequency == "once")

    @property
    def total_multiple_deductions(self) -> float:
        return sum(line.amount for line in self.lines if line.frequency == "multiple")

    @property
    def total_deductions(self) -> float:
        return self.total_once_deductions + self.total_multiple_deductions + self.total_manual_deductions

    @property
    def profit(self) -> float:
        return self.total_income - self.total_deductions

    @property
    def profit_rate(self) -> float:
        if self.total_income <= 0:
            return 0.0
        return self.profit / self.total_income * 100

    def to_dict(self) -> dict:
        return {
            "total_income": self.total_income,
            "total_hours": self.total_hours,
            "total_deductions": self.total_deductions,
            "total_once_deductions": self.total_once_deductions,
            "total_multiple_deductions": self.total_multiple_deductions,
            "total_manual_deductions": self.total_manual_deductions,
            "profit": self.profit,
            "profit_rate": self.profit_rate,
            "deduction_details": [line.to_dict() for line in self.lines],
        }

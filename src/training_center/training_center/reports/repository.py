from __future__ import annotations

from datetime import date
from typing import Protocol, Sequence

from ..common.datetime_utils import DateRange
from .model import PeriodFigures, StudentFigures


class ReportRepository(Protocol):
    """Read-only aggregates over income, classes, students and deduction details."""

    def period_figures(self, period: DateRange) -> PeriodFigures:
        raise NotImplementedError

    def recharge_hours(self, period: DateRange) -> int:
        raise NotImplementedError

    def student_totals(self) -> tuple[int, int]:
        """(number of students, sum of remaining hours)."""
        raise NotImplementedError

    def income_trend(self, *, since: date) -> Sequence[dict]:
        raise NotImplementedError

    def hours_trend(self, *, since: date) -> Sequence[dict]:
        raise NotImplementedError

    def student_figures(self, student_id: int) -> StudentFigures:
        raise NotImplementedError

    def manual_deductions_by_type(self, period: DateRange) -> Sequence[dict]:
        raise NotImplementedError

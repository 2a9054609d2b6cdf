from __future__ import annotations

from datetime import date
from typing import Any, Optional

from ..common.datetime_utils import months_ago, now_local, parse_period, period_range
from ..common.validators import clamp_int
from ..core.constants import DEFAULT_TREND_MONTHS, MAX_TREND_MONTHS
from ..core.exceptions import NotFoundError
from ..deductions.repository import DeductionConfigRepository, StudentDeductionRepository
from ..students.repository import StudentRepository
from .calculator.base import ProfitCalculator
from .calculator.standard_calculator import StandardProfitCalculator
from .model import ProfitSummary
from .repository import ReportRepository


class StatsService:
    """Dashboard counters and monthly trends."""

    def __init__(self, reports: ReportRepository):
        self._reports = reports

    def stats(self, period: Optional[str] = None, *, today: Optional[date] = None) -> dict:
        today = today or now_local().date()
        selected = parse_period(period)
        window = period_range(selected, today=today)

        figures = self._reports.period_figures(window)
        total_students, total_hours = self._reports.student_totals()
        return {
            "period": selected.value,
            "total_income": figures.total_income,
            "income_count": figures.income_count,
            "total_students": total_students,
            "total_hours": total_hours,
            "total_classes": figures.class_count,
            "total_hours_used": figures.total_hours_used,
            "new_students": figures.new_students,
            "recharge_hours": self._reports.recharge_hours(window),
        }

    @staticmethod
    def _since(months: Any, today: Optional[date]) -> date:
        months = clamp_int(months, default=DEFAULT_TREND_MONTHS, minimum=1, maximum=MAX_TREND_MONTHS)
        return months_ago(today or now_local().date(), months)

    def income_trend(self, months: Any = None, *, today: Optional[date] = None) -> list[dict]:
        return list(self._reports.income_trend(since=self._since(months, today)))

    def hours_trend(self, months: Any = None, *, today: Optional[date] = None) -> list[dict]:
        return list(self._reports.hours_trend(since=self._since(months, today)))


class ProfitReportService:
    def __init__(
        self,
        reports: ReportRepository,
        students: StudentRepository,
        configs: DeductionConfigRepository,
        assignments: StudentDeductionRepository,
        *,
        calculator: Optional[ProfitCalculator] = None,
    ):
        self._reports = reports
        self._students = students
        self._configs = configs
        self._assignments = assignments
        self._calculator = calculator or StandardProfitCalculator()

    def student_profit(self, student_id: int) -> dict:
        student = self._students.get_by_id(student_id)
        if not student:
            raise NotFoundError("Student not found")

        figures = self._reports.student_figures(student_id)
        lines = [
            self._calculator.student_line(deduction, figures)
            for deduction in self._assignments.list_attached(student_id)
        ]

        summary = ProfitSummary(
            total_income=figures.total_income,
            total_hours=figures.total_hours_used,
            lines=lines,
            total_manual_deductions=figures.manual_deductions,
        )
        data = {"student": {"id": student.student_id, "name": student.name, "phone": student.phone}}
        data.update(summary.to_dict())
        return data

    def overall_profit(self, period: Optional[str] = None, *, today: Optional[date] = None) -> dict:
        selected = parse_period(period)
        window = period_range(selected, today=today or now_local().date())

        figures = self._reports.period_figures(window)
        lines = [self._calculator.overall_line(config, figures) for config in self._configs.list_active()]
        manual = list(self._reports.manual_deductions_by_type(window))

        summary = ProfitSummary(
            total_income=figures.total_income,
            total_hours=figures.total_hours_used,
            lines=lines,
            total_manual_deductions=sum(item["amount"] for item in manual),
        )
        data = {"period": selected.value}
        data.update(summary.to_dict())
        data["manual_deduction_details"] = manual
        return data

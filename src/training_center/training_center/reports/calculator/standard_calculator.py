from __future__ import annotations

from ...core.enums import DeductionFrequency, DeductionType
from ...deductions.model import DeductionConfig, StudentDeduction
from ..model import DeductionLine, PeriodFigures, StudentFigures
from .base import ProfitCalculator


def _num(value: float) -> str:
    """1500.0 -> '1500', 12.5 -> '12.5'."""
    return f"{float(value):.2f}".rstrip("0").rstrip(".")


class StandardProfitCalculator(ProfitCalculator):
    """Standard rules.

    Per student (attached configs):
    - percentage/once: first recharge x value%; percentage/multiple: total income x value%
    - fixed: value, whatever the frequency
    - per_hour/once: value; per_hour/multiple: consumed hours x value

    Centre-wide (all active configs, period totals):
    - percentage: income x value%
    - fixed/once and per_hour/once: new students x value
    - fixed/multiple: value; per_hour/multiple: consumed hours x value
    """

    def student_line(self, deduction: StudentDeduction, figures: StudentFigures) -> DeductionLine:
        config = deduction.config
        value = config.value
        once = config.frequency == DeductionFrequency.ONCE

        if config.type == DeductionType.PERCENTAGE and once:
            amount = figures.first_income_amount * value / 100
            calculation = f"One-time: first recharge {_num(figures.first_income_amount)} x {_num(value)}% = {amount:.2f}"
        elif config.type == DeductionType.PERCENTAGE:
            amount = figures.total_income * value / 100
            calculation = f"{_num(figures.total_income)} x {_num(value)}% = {amount:.2f}"
        elif config.type == DeductionType.PER_HOUR and not once:
            amount = figures.total_hours_used * value
            calculation = f"{figures.total_hours_used} hour(s) x {_num(value)} = {amount:.2f}"
        elif once:
            amount = value
            calculation = f"One-time: {_num(value)}"
        else:
            amount = value
            calculation = f"Fixed amount: {_num(value)}"

        applied_info = f"Applied {deduction.applied_count} time(s)"
        if not once:
            applied_info += f", last applied: {deduction.last_applied_date or '-'}"

        return DeductionLine(
            config_id=config.config_id,
            name=config.name,
            type=config.type.value,
            value=value,
            frequency=config.frequency.value,
            amount=amount,
            calculation=calculation,
            applied_count=deduction.applied_count,
            last_applied_date=deduction.last_applied_date,
            applied_info=applied_info,
        )

    def overall_line(self, config: DeductionConfig, figures: PeriodFigures) -> DeductionLine:
        value = config.value
        once = config.frequency == DeductionFrequency.ONCE

        if config.type == DeductionType.PERCENTAGE:
            amount = figures.total_income * value / 100
            calculation = f"{_num(figures.total_income)} x {_num(value)}% = {amount:.2f}"
            if once:
                calculation = "One-time: " + calculation
        elif once:
            amount = figures.new_students * value
            calculation = f"One-time: {figures.new_students} student(s) x {_num(value)} = {amount:.2f}"
        elif config.type == DeductionType.PER_HOUR:
            amount = figures.total_hours_used * value
            calculation = f"{figures.total_hours_used} hour(s) x {_num(value)} = {amount:.2f}"
        else:
            amount = value
            calculation = f"Fixed amount: {_num(value)}"

        return DeductionLine(
            config_id=config.config_id,
            name=config.name,
            type=config.type.value,
            value=value,
            frequency=config.frequency.value,
            amount=amount,
            calculation=calculation,
        )

from __future__ import annotations

from abc import ABC, abstractmethod

from ...deductions.model import DeductionConfig, StudentDeduction
from ..model import DeductionLine, PeriodFigures, StudentFigures


class ProfitCalculator(ABC):
    """Calculator interface (Strategy Pattern for deduction amounts)."""

    @abstractmethod
    def student_line(self, deduction: StudentDeduction, figures: StudentFigures) -> DeductionLine:
        raise NotImplementedError

    @abstractmethod
    def overall_line(self, config: DeductionConfig, figures: PeriodFigures) -> DeductionLine:
        raise NotImplementedError

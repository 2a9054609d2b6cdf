from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Protocol, Sequence

from ..core.enums import DeductionFrequency, DeductionType
from .model import DeductionConfig, DeductionDetail, DetailFilter, DetailInput, StudentDeduction


class DeductionConfigRepository(Protocol):
    def create(
        self,
        *,
        name: str,
        type: DeductionType,
        value: float,
        description: Optional[str],
        frequency: DeductionFrequency,
        is_active: bool,
    ) -> int:
        raise NotImplementedError

    def update(
        self,
        config_id: int,
        *,
        name: str,
        type: DeductionType,
        value: float,
        description: Optional[str],
        frequency: DeductionFrequency,
        is_active: bool,
    ) -> bool:
        raise NotImplementedError

    def get_by_id(self, config_id: int) -> Optional[DeductionConfig]:
        raise NotImplementedError

    def list_all(self) -> Sequence[DeductionConfig]:
        raise NotImplementedError

    def list_active(self) -> Sequence[DeductionConfig]:
        raise NotImplementedError

    def existing_ids(self, config_ids: Iterable[int]) -> set[int]:
        raise NotImplementedError


class StudentDeductionRepository(Protocol):
    def list_for_student(self, student_id: int) -> Sequence[StudentDeduction]:
        """Every active config, with the student's assignment when there is one."""
        raise NotImplementedError

    def list_attached(self, student_id: int) -> Sequence[StudentDeduction]:
        """Active configs actually attached to the student."""
        raise NotImplementedError

    def replace_for_student(self, student_id: int, config_ids: Sequence[int], *, applied_at: datetime) -> None:
        raise NotImplementedError


class DeductionDetailRepository(Protocol):
    def create(self, student_id: int, data: DetailInput, *, created_at: datetime) -> int:
        raise NotImplementedError

    def update(self, detail_id: int, data: DetailInput, *, updated_at: datetime) -> bool:
        raise NotImplementedError

    def delete(self, detail_id: int) -> bool:
        raise NotImplementedError

    def get_by_id(self, detail_id: int) -> Optional[DeductionDetail]:
        raise NotImplementedError

    def search(self, filters: DetailFilter, *, offset: int = 0, limit: Optional[int] = None) -> Sequence[DeductionDetail]:
        raise NotImplementedError

    def count(self, filters: DetailFilter) -> int:
        raise NotImplementedError

    def class_belongs_to_student(self, class_id: int, student_id: int) -> bool:
        raise NotImplementedError

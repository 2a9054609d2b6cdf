from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Mapping, Optional

from ..common.datetime_utils import now_local
from ..common.validators import (
    as_bool,
    clamp_int,
    optional_date,
    optional_int,
    optional_text,
    require_date,
    require_enum,
    require_non_empty,
    require_number,
    require_positive_number,
)
from ..core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from ..core.enums import DeductionFrequency, DeductionType, DetailType
from ..core.exceptions import NotFoundError, ValidationError
from ..students.repository import StudentRepository
from .model import DeductionConfig, DeductionDetail, DetailFilter, DetailInput, Page, StudentDeduction
from .repository import DeductionConfigRepository, DeductionDetailRepository, StudentDeductionRepository

logger = logging.getLogger(__name__)


class DeductionConfigService:
    """Use cases: maintain the catalogue of fee rules (admin)."""

    def __init__(self, configs: DeductionConfigRepository):
        self._configs = configs

    @staticmethod
    def _validate(body: Mapping[str, Any], *, current: Optional[DeductionConfig] = None) -> dict:
        name, type_, value = body.get("name"), body.get("type"), body.get("value")
        if not name or not type_ or value is None:
            raise ValidationError("Name, type and value are required")

        value = require_number(value, "Value")
        if value < 0:
            raise ValidationError("Value must not be negative")

        # On update an omitted frequency / is_active keeps the stored value.
        frequency = body.get("frequency")
        if frequency is None:
            frequency = current.frequency if current else DeductionFrequency.ONCE

        is_active = body.get("is_active")
        if is_active is None:
            is_active = current.is_active if current else True

        return {
            "name": require_non_empty(name, "Name"),
            "type": require_enum(DeductionType, type_, "Type"),
            "value": value,
            "description": optional_text(body.get("description")),
            "frequency": require_enum(DeductionFrequency, frequency, "Frequency"),
            "is_active": as_bool(is_active, default=True),
        }

    def create(self, body: Mapping[str, Any]) -> DeductionConfig:
        fields = self._validate(body)
        config_id = self._configs.create(**fields)
        logger.info("Created deduction config %s (%s)", config_id, fields["name"])
        return DeductionConfig(config_id=config_id, **fields)

    def list_configs(self) -> list[DeductionConfig]:
        return list(self._configs.list_all())

    def update(self, config_id: int, body: Mapping[str, Any]) -> DeductionConfig:
        current = self._configs.get_by_id(config_id)
        if not current:
            raise NotFoundError("Deduction config not found")
        fields = self._validate(body, current=current)
        if not self._configs.update(config_id, **fields):
            raise NotFoundError("Deduction config not found")
        logger.info("Updated deduction config %s", config_id)
        return DeductionConfig(config_id=int(config_id), **fields)


class StudentDeductionService:
    """Use cases: which fee rules apply to which student."""

    def __init__(
        self,
        assignments: StudentDeductionRepository,
        configs: DeductionConfigRepository,
        students: StudentRepository,
    ):
        self._assignments = assignments
        self._configs = configs
        self._students = students

    def list_for_student(self, student_id: int) -> list[StudentDeduction]:
        return list(self._assignments.list_for_student(student_id))

    def set_for_student(self, student_id: int, deduction_ids: Any, *, now: Optional[datetime] = None) -> dict:
        if not isinstance(deduction_ids, list):
            raise ValidationError("deduction_ids must be a list")

        ids: list[int] = []
        for raw in deduction_ids:
            cid = optional_int(raw, "Deduction id")
            if cid is None:
                raise ValidationError("Deduction id must be an integer")
            if cid not in ids:
                ids.append(cid)

        if not self._students.get_by_id(student_id):
            raise NotFoundError("Student not found")

        unknown = sorted(set(ids) - self._configs.existing_ids(ids))
        if unknown:
            raise ValidationError(
                "Unknown deduction config id(s): " + ", ".join(str(i) for i in unknown),
                data={"unknown_ids": unknown},
            )

        self._assignments.replace_for_student(student_id, ids, applied_at=now or now_local())
        logger.info("Student %s deductions set to %s", student_id, ids)
        return {"student_id": int(student_id), "deduction_ids": ids}


class DeductionDetailService:
    """Use cases: manually recorded costs attributed to a student."""

    def __init__(self, details: DeductionDetailRepository, students: StudentRepository):
        self._details = details
        self._students = students

    @staticmethod
    def _validate(body: Mapping[str, Any]) -> DetailInput:
        if not body.get("deduction_type") or body.get("amount") in (None, "") or not body.get("date") or not body.get("operator"):
            raise ValidationError("Deduction type, amount, date and operator are required")
        return DetailInput(
            deduction_type=require_enum(DetailType, body.get("deduction_type"), "Deduction type"),
            amount=require_positive_number(body.get("amount"), "Amount"),
            description=optional_text(body.get("description")),
            date=require_date(body.get("date"), "Date"),
            operator=require_non_empty(body.get("operator"), "Operator"),
            related_class_id=optional_int(body.get("related_class_id"), "Related class id"),
        )

    def _check_class(self, data: DetailInput, student_id: int) -> None:
        if data.related_class_id is not None and not self._details.class_belongs_to_student(
            data.related_class_id, student_id
        ):
            raise ValidationError("Related class does not belong to this student")

    def create(self, student_id: int, body: Mapping[str, Any], *, now: Optional[datetime] = None) -> DeductionDetail:
        data = self._validate(body)
        if not self._students.get_by_id(student_id):
            raise NotFoundError("Student not found")
        self._check_class(data, student_id)

        detail_id = self._details.create(student_id, data, created_at=now or now_local())
        logger.info("Created deduction detail %s for student %s (%s %.2f)", detail_id, student_id, data.deduction_type.value, data.amount)
        return self._details.get_by_id(detail_id) or DeductionDetail(
            detail_id=detail_id,
            student_id=int(student_id),
            deduction_type=data.deduction_type,
            amount=data.amount,
            description=data.description,
            date=data.date,
            operator=data.operator,
            related_class_id=data.related_class_id,
        )

    @staticmethod
    def _filters(args: Mapping[str, Any], *, student_id: Optional[int] = None) -> DetailFilter:
        type_ = args.get("type") or None
        return DetailFilter(
            student_id=student_id if student_id is not None else optional_int(args.get("student_id"), "student_id"),
            deduction_type=require_enum(DetailType, type_, "type") if type_ else None,
            start_date=optional_date(args.get("start_date"), "start_date"),
            end_date=optional_date(args.get("end_date"), "end_date"),
        )

    def list_for_student(self, student_id: int, args: Mapping[str, Any]) -> list[DeductionDetail]:
        return list(self._details.search(self._filters(args, student_id=int(student_id))))

    def search(self, args: Mapping[str, Any]) -> Page:
        filters = self._filters(args)
        page = clamp_int(args.get("page"), default=1, minimum=1, maximum=10**6)
        limit = clamp_int(args.get("limit"), default=DEFAULT_PAGE_SIZE, minimum=1, maximum=MAX_PAGE_SIZE)
        items = list(self._details.search(filters, offset=(page - 1) * limit, limit=limit))
        return Page(items=items, page=page, limit=limit, total=self._details.count(filters))

    def update(self, detail_id: int, body: Mapping[str, Any], *, now: Optional[datetime] = None) -> DeductionDetail:
        data = self._validate(body)
        current = self._details.get_by_id(detail_id)
        if not current:
            raise NotFoundError("Deduction detail not found")
        self._check_class(data, current.student_id)

        if not self._details.update(detail_id, data, updated_at=now or now_local()):
            raise NotFoundError("Deduction detail not found")
        logger.info("Updated deduction detail %s", detail_id)
        return self._details.get_by_id(detail_id) or current

    def delete(self, detail_id: int) -> dict:
        current = self._details.get_by_id(detail_id)
        if not current:
            raise NotFoundError("Deduction detail not found")
        if not self._details.delete(detail_id):
            raise NotFoundError("Deduction detail not found")
        logger.info(
            "Deleted deduction detail %s of student %s (%s %.2f)",
            detail_id, current.student_id, current.deduction_type.value, current.amount,
        )
        return {
            "deleted_id": int(detail_id),
            "student_name": current.student_name,
            "deduction_type": current.deduction_type.value,
            "amount": current.amount,
        }

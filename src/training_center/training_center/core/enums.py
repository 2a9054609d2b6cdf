from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles used for permission checks."""

    ADMIN = "admin"
    TEACHER = "teacher"
    OPERATOR = "operator"


class DeductionType(str, Enum):
    """How a deduction config turns into an amount."""

    PERCENTAGE = "percentage"
    FIXED = "fixed"
    PER_HOUR = "per_hour"


class DeductionFrequency(str, Enum):
    """ONCE applies when a student enrolls, MULTIPLE on every recharge."""

    ONCE = "once"
    MULTIPLE = "multiple"


class DetailType(str, Enum):
    """Categories of manually recorded deduction details."""

    TEACHER_FEE = "teacher_fee"
    MATERIAL_FEE = "material_fee"
    EQUIPMENT_FEE = "equipment_fee"
    OTHER_FEE = "other_fee"


class StatsPeriod(str, Enum):
    TODAY = "today"
    WEEK = "week"
    MONTH = "month"
    ALL = "all"


class OperationType(str, Enum):
    """Audited operations stored in operation_logs."""

    CREATE_STUDENT = "CREATE_STUDENT"
    UPDATE_STUDENT = "UPDATE_STUDENT"
    DELETE_STUDENT = "DELETE_STUDENT"
    ADD_INCOME = "ADD_INCOME"
    DELETE_INCOME = "DELETE_INCOME"
    ADD_CLASS = "ADD_CLASS"
    CREATE_DEDUCTION_CONFIG = "CREATE_DEDUCTION_CONFIG"
    UPDATE_DEDUCTION_CONFIG = "UPDATE_DEDUCTION_CONFIG"
    CREATE_STUDENT_DEDUCTION = "CREATE_STUDENT_DEDUCTION"
    CREATE_DEDUCTION_DETAIL = "CREATE_DEDUCTION_DETAIL"
    UPDATE_DEDUCTION_DETAIL = "UPDATE_DEDUCTION_DETAIL"
    DELETE_DEDUCTION_DETAIL = "DELETE_DEDUCTION_DETAIL"
    LOGIN = "LOGIN"
    LOGOUT = "LOGOUT"

from __future__ import annotations

from datetime import date
from typing import Any, List, Sequence, Tuple

from ..common.datetime_utils import DateRange
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, to_float, to_int
from .model import PeriodFigures, StudentFigures
from .repository import ReportRepository


def _range(column: str, period: DateRange) -> Tuple[str, List[Any]]:
    if not period.is_bounded:
        return "", []
    return f" AND {column} >= %s AND {column} <= %s", [period.start, period.end]


class MySQLReportRepository(ReportRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def period_figures(self, period: DateRange) -> PeriodFigures:
        income_where, income_params = _range("date", period)
        class_where, class_params = _range("date", period)
        student_where, student_params = _range("DATE(created_at)", period)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT COALESCE(SUM(amount), 0) AS total, COUNT(*) AS n FROM income WHERE 1=1" + income_where,
                tuple(income_params),
            )
            income = fetchone(cur) or {}
            cur.execute(
                "SELECT COALESCE(SUM(hours_used), 0) AS hours, COUNT(*) AS n FROM classes WHERE 1=1" + class_where,
                tuple(class_params),
            )
            classes = fetchone(cur) or {}
            cur.execute("SELECT COUNT(*) AS n FROM students WHERE 1=1" + student_where, tuple(student_params))
            students = fetchone(cur) or {}
        return PeriodFigures(
            total_income=to_float(income.get("total")),
            income_count=to_int(income.get("n")),
            total_hours_used=to_int(classes.get("hours")),
            class_count=to_int(classes.get("n")),
            new_students=to_int(students.get("n")),
        )

    def recharge_hours(self, period: DateRange) -> int:
        where, params = _range("date", period)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COALESCE(SUM(hours), 0) AS hours FROM income WHERE 1=1" + where, tuple(params))
            return to_int((fetchone(cur) or {}).get("hours"))

    def student_totals(self) -> tuple[int, int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS n, COALESCE(SUM(remaining_hours), 0) AS hours FROM students")
            r = fetchone(cur) or {}
            return to_int(r.get("n")), to_int(r.get("hours"))

    def income_trend(self, *, since: date) -> Sequence[dict]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT CONCAT(YEAR(date), '-', LPAD(MONTH(date), 2, '0')) AS month,
                       COALESCE(SUM(amount), 0) AS total_amount,
                       COUNT(*) AS count
                FROM income
                WHERE date >= %s
                GROUP BY month
                ORDER BY month ASC
                """,
                (since,),
            )
            return [
                {"month": r["month"], "total_amount": to_float(r["total_amount"]), "count": to_int(r["count"])}
                for r in fetchall(cur)
            ]

    def hours_trend(self, *, since: date) -> Sequence[dict]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT CONCAT(YEAR(date), '-', LPAD(MONTH(date), 2, '0')) AS month,
                       COALESCE(SUM(hours_used), 0) AS total_hours,
                       COUNT(*) AS count
                FROM classes
                WHERE date >= %s
                GROUP BY month
                ORDER BY month ASC
                """,
                (since,),
            )
            return [
                {"month": r["month"], "total_hours": to_int(r["total_hours"]), "count": to_int(r["count"])}
                for r in fetchall(cur)
            ]

    def student_figures(self, student_id: int) -> StudentFigures:
        sid = int(student_id)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COALESCE(SUM(amount), 0) AS total FROM income WHERE student_id=%s", (sid,))
            total_income = to_float((fetchone(cur) or {}).get("total"))
            cur.execute(
                "SELECT amount FROM income WHERE student_id=%s ORDER BY date ASC, id ASC LIMIT 1",
                (sid,),
            )
            first = fetchone(cur) or {}
            cur.execute("SELECT COALESCE(SUM(hours_used), 0) AS hours FROM classes WHERE student_id=%s", (sid,))
            hours = to_int((fetchone(cur) or {}).get("hours"))
            cur.execute("SELECT COALESCE(SUM(amount), 0) AS total FROM deduction_details WHERE student_id=%s", (sid,))
            manual = to_float((fetchone(cur) or {}).get("total"))
        return StudentFigures(
            total_income=total_income,
            first_income_amount=to_float(first.get("amount")),
            total_hours_used=hours,
            manual_deductions=manual,
        )

    def manual_deductions_by_type(self, period: DateRange) -> Sequence[dict]:
        where, params = _range("date", period)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT deduction_type, COALESCE(SUM(amount), 0) AS amount, COUNT(*) AS count
                FROM deduction_details
                WHERE 1=1
                """
                + where
                + " GROUP BY deduction_type ORDER BY deduction_type",
                tuple(params),
            )
            return [
                {"type": r["deduction_type"], "amount": to_float(r["amount"]), "count": to_int(r["count"])}
                for r in fetchall(cur)
            ]

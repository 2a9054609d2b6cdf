from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional, Sequence, Tuple

from ..core.enums import DetailType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, to_float, to_int
from .model import DeductionDetail, DetailFilter, DetailInput
from .repository import DeductionDetailRepository

_SELECT = """
    SELECT dd.id, dd.student_id, dd.deduction_type, dd.amount, dd.description, dd.date,
           dd.operator, dd.related_class_id, dd.created_at, dd.updated_at,
           s.name AS student_name, s.phone AS student_phone,
           c.hours_used AS related_class_hours, c.date AS related_class_date
    FROM deduction_details dd
    LEFT JOIN students s ON s.id = dd.student_id
    LEFT JOIN classes c ON c.id = dd.related_class_id
"""


def _where(filters: DetailFilter) -> Tuple[str, List[Any]]:
    clauses: List[str] = []
    params: List[Any] = []
    if filters.student_id is not None:
        clauses.append("dd.student_id = %s")
        params.append(int(filters.student_id))
    if filters.deduction_type is not None:
        clauses.append("dd.deduction_type = %s")
        params.append(DetailType(filters.deduction_type).value)
    if filters.start_date is not None:
        clauses.append("dd.date >= %s")
        params.append(filters.start_date)
    if filters.end_date is not None:
        clauses.append("dd.date <= %s")
        params.append(filters.end_date)
    return (" WHERE " + " AND ".join(clauses)) if clauses else "", params


def _row_to_detail(r: dict) -> DeductionDetail:
    hours = r.get("related_class_hours")
    return DeductionDetail(
        detail_id=int(r["id"]),
        student_id=int(r["student_id"]),
        deduction_type=DetailType(r["deduction_type"]),
        amount=to_float(r["amount"]),
        description=r.get("description"),
        date=r["date"],
        operator=r["operator"],
        related_class_id=r.get("related_class_id"),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
        student_name=r.get("student_name"),
        student_phone=r.get("student_phone"),
        related_class_hours=to_int(hours) if hours is not None else None,
        related_class_date=r.get("related_class_date"),
    )


class MySQLDeductionDetailRepository(DeductionDetailRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, student_id: int, data: DetailInput, *, created_at: datetime) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO deduction_details(
                    student_id, deduction_type, amount, description, date, operator, related_class_id, created_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(student_id),
                    data.deduction_type.value,
                    data.amount,
                    data.description,
                    data.date,
                    data.operator,
                    data.related_class_id,
                    created_at,
                ),
            )
            return int(cur.lastrowid)

    def update(self, detail_id: int, data: DetailInput, *, updated_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE deduction_details
                SET deduction_type=%s, amount=%s, description=%s, date=%s, operator=%s,
                    related_class_id=%s, updated_at=%s
                WHERE id=%s
                """,
                (
                    data.deduction_type.value,
                    data.amount,
                    data.description,
                    data.date,
                    data.operator,
                    data.related_class_id,
                    updated_at,
                    int(detail_id),
                ),
            )
            return cur.rowcount == 1

    def delete(self, detail_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM deduction_details WHERE id=%s", (int(detail_id),))
            return cur.rowcount == 1

    def get_by_id(self, detail_id: int) -> Optional[DeductionDetail]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE dd.id = %s", (int(detail_id),))
            r = fetchone(cur)
            return _row_to_detail(r) if r else None

    def search(self, filters: DetailFilter, *, offset: int = 0, limit: Optional[int] = None) -> Sequence[DeductionDetail]:
        where, params = _where(filters)
        sql = _SELECT + where + " ORDER BY dd.date DESC, dd.created_at DESC, dd.id DESC"
        if limit is not None:
            sql += " LIMIT %s OFFSET %s"
            params += [int(limit), int(offset)]
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_row_to_detail(r) for r in fetchall(cur)]

    def count(self, filters: DetailFilter) -> int:
        where, params = _where(filters)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS total FROM deduction_details dd" + where, tuple(params))
            r = fetchone(cur) or {}
            return to_int(r.get("total"))

    def class_belongs_to_student(self, class_id: int, student_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT 1 AS ok FROM classes WHERE id=%s AND student_id=%s",
                (int(class_id), int(student_id)),
            )
            return fetchone(cur) is not None

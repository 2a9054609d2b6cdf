from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone, to_float, to_int
from ..students.model import IncomeRecord
from .repository import IncomeRepository, ReversalOutcome


class MySQLIncomeRepository(IncomeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, income_id: int) -> Optional[IncomeRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT id, student_id, amount, hours, date, created_at FROM income WHERE id=%s",
                (int(income_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return IncomeRecord(
                income_id=int(r["id"]),
                student_id=int(r["student_id"]),
                amount=to_float(r["amount"]),
                hours=to_int(r.get("hours")),
                date=r["date"],
                created_at=r.get("created_at"),
            )

    def has_classes_after(self, student_id: int, *, since: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT COUNT(*) AS n FROM classes WHERE student_id=%s AND created_at > %s",
                (int(student_id), since),
            )
            r = fetchone(cur) or {}
            return to_int(r.get("n")) > 0

    def delete_and_reverse_hours(self, income: IncomeRecord) -> ReversalOutcome:
        with db_cursor(self._conn_factory) as (conn, cur):
            cur.execute("DELETE FROM income WHERE id=%s", (income.income_id,))
            if cur.rowcount != 1:
                return ReversalOutcome.MISSING
            cur.execute(
                """
                UPDATE students SET remaining_hours = remaining_hours - %s
                WHERE id=%s AND remaining_hours >= %s
                """,
                (income.hours, income.student_id, income.hours),
            )
            if cur.rowcount != 1:
                # Hours already spent; keep the income row.
                conn.rollback()
                return ReversalOutcome.INSUFFICIENT_HOURS
            return ReversalOutcome.DELETED

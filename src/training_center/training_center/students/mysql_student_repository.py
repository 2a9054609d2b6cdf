from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from mysql.connector import IntegrityError

from ..core.enums import DeductionFrequency
from ..core.exceptions import ValidationError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, to_float, to_int
from .model import ClassRecord, IncomeRecord, Student
from .repository import StudentRepository


def _row_to_student(r: dict) -> Student:
    return Student(
        student_id=int(r["id"]),
        name=r["name"],
        phone=r["phone"],
        remaining_hours=to_int(r.get("remaining_hours")),
        created_at=r.get("created_at"),
    )


class MySQLStudentRepository(StudentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, student_id: int) -> Optional[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT id, name, phone, remaining_hours, created_at FROM students WHERE id=%s",
                (int(student_id),),
            )
            r = fetchone(cur)
            return _row_to_student(r) if r else None

    def get_by_phone(self, phone: str) -> Optional[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT id, name, phone, remaining_hours, created_at FROM students WHERE phone=%s",
                (phone,),
            )
            r = fetchone(cur)
            return _row_to_student(r) if r else None

    def list_all(self) -> Sequence[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT id, name, phone, remaining_hours, created_at FROM students ORDER BY id")
            return [_row_to_student(r) for r in fetchall(cur)]

    def create_with_deductions(self, *, name: str, phone: str, applied_at: datetime) -> tuple[int, int]:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    "INSERT INTO students(name, phone, remaining_hours, created_at) VALUES(%s,%s,0,%s)",
                    (name, phone, applied_at),
                )
                student_id = int(cur.lastrowid)
                cur.execute(
                    """
                    INSERT INTO student_deductions(student_id, deduction_config_id, applied_count, last_applied_date)
                    SELECT %s, id, 1, %s
                    FROM deduction_configs
                    WHERE is_active=1 AND frequency=%s
                    """,
                    (student_id, applied_at, DeductionFrequency.ONCE.value),
                )
                return student_id, int(cur.rowcount or 0)
        except IntegrityError:
            # Lost a race with another insert of the same phone.
            raise ValidationError("Phone number already exists")

    def recharge(self, student_id: int, *, amount: float, hours: int, on: date, applied_at: datetime) -> tuple[int, int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE students SET remaining_hours = remaining_hours + %s WHERE id=%s",
                (int(hours), int(student_id)),
            )
            cur.execute(
                "INSERT INTO income(student_id, amount, hours, date, created_at) VALUES(%s,%s,%s,%s,%s)",
                (int(student_id), amount, int(hours), on, applied_at),
            )
            income_id = int(cur.lastrowid)
            cur.execute(
                """
                UPDATE student_deductions sd
                JOIN deduction_configs dc ON dc.id = sd.deduction_config_id
                SET sd.applied_count = sd.applied_count + 1, sd.last_applied_date = %s
                WHERE sd.student_id=%s AND dc.is_active=1 AND dc.frequency=%s
                """,
                (applied_at, int(student_id), DeductionFrequency.MULTIPLE.value),
            )
            return income_id, int(cur.rowcount or 0)

    def consume_hours(self, student_id: int, *, hours: int, on: date, at: datetime) -> Optional[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE students SET remaining_hours = remaining_hours - %s
                WHERE id=%s AND remaining_hours >= %s
                """,
                (int(hours), int(student_id), int(hours)),
            )
            if cur.rowcount != 1:
                return None
            cur.execute(
                "INSERT INTO classes(student_id, hours_used, date, created_at) VALUES(%s,%s,%s,%s)",
                (int(student_id), int(hours), on, at),
            )
            return int(cur.lastrowid)

    def delete_cascade(self, student_id: int) -> bool:
        sid = int(student_id)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM deduction_details WHERE student_id=%s", (sid,))
            cur.execute("DELETE FROM student_deductions WHERE student_id=%s", (sid,))
            cur.execute("DELETE FROM classes WHERE student_id=%s", (sid,))
            cur.execute("DELETE FROM income WHERE student_id=%s", (sid,))
            cur.execute("DELETE FROM students WHERE id=%s", (sid,))
            return cur.rowcount == 1

    def list_income(self, student_id: int) -> Sequence[IncomeRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT id, student_id, amount, hours, date, created_at
                FROM income WHERE student_id=%s
                ORDER BY date DESC, id DESC
                """,
                (int(student_id),),
            )
            return [
                IncomeRecord(
                    income_id=int(r["id"]),
                    student_id=int(r["student_id"]),
                    amount=to_float(r["amount"]),
                    hours=to_int(r.get("hours")),
                    date=r["date"],
                    created_at=r.get("created_at"),
                )
                for r in fetchall(cur)
            ]

    def list_classes(self, student_id: int) -> Sequence[ClassRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT id, student_id, hours_used, date, created_at
                FROM classes WHERE student_id=%s
                ORDER BY date DESC, id DESC
                """,
                (int(student_id),),
            )
            return [
                ClassRecord(
                    class_id=int(r["id"]),
                    student_id=int(r["student_id"]),
                    hours_used=to_int(r["hours_used"]),
                    date=r["date"],
                    created_at=r.get("created_at"),
                )
                for r in fetchall(cur)
            ]

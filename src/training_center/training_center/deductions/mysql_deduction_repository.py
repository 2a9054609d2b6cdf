from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Sequence

from ..core.enums import DeductionFrequency, DeductionType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, placeholders, to_float, to_int
from .model import DeductionConfig, StudentDeduction
from .repository import DeductionConfigRepository, StudentDeductionRepository

_CONFIG_COLUMNS = "dc.id, dc.name, dc.type, dc.value, dc.description, dc.frequency, dc.is_active"


def _row_to_config(r: dict) -> DeductionConfig:
    return DeductionConfig(
        config_id=int(r["id"]),
        name=r["name"],
        type=DeductionType(r["type"]),
        value=to_float(r["value"]),
        description=r.get("description"),
        frequency=DeductionFrequency(r["frequency"]),
        is_active=bool(r.get("is_active", 1)),
    )


def _row_to_student_deduction(r: dict) -> StudentDeduction:
    sd_id = r.get("student_deduction_id")
    return StudentDeduction(
        config=_row_to_config(r),
        student_deduction_id=int(sd_id) if sd_id is not None else None,
        applied_count=to_int(r.get("applied_count")),
        last_applied_date=r.get("last_applied_date"),
    )


class MySQLDeductionConfigRepository(DeductionConfigRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, *, name, type, value, description, frequency, is_active) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO deduction_configs(name, type, value, description, frequency, is_active)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (name, DeductionType(type).value, value, description, DeductionFrequency(frequency).value, int(bool(is_active))),
            )
            return int(cur.lastrowid)

    def update(self, config_id: int, *, name, type, value, description, frequency, is_active) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE deduction_configs
                SET name=%s, type=%s, value=%s, description=%s, frequency=%s, is_active=%s
                WHERE id=%s
                """,
                (
                    name,
                    DeductionType(type).value,
                    value,
                    description,
                    DeductionFrequency(frequency).value,
                    int(bool(is_active)),
                    int(config_id),
                ),
            )
            return cur.rowcount == 1

    def get_by_id(self, config_id: int) -> Optional[DeductionConfig]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_CONFIG_COLUMNS} FROM deduction_configs dc WHERE dc.id=%s", (int(config_id),))
            r = fetchone(cur)
            return _row_to_config(r) if r else None

    def list_all(self) -> Sequence[DeductionConfig]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_CONFIG_COLUMNS} FROM deduction_configs dc ORDER BY dc.id")
            return [_row_to_config(r) for r in fetchall(cur)]

    def list_active(self) -> Sequence[DeductionConfig]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_CONFIG_COLUMNS} FROM deduction_configs dc WHERE dc.is_active=1 ORDER BY dc.id")
            return [_row_to_config(r) for r in fetchall(cur)]

    def existing_ids(self, config_ids: Iterable[int]) -> set[int]:
        ids = [int(i) for i in config_ids]
        if not ids:
            return set()
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT id FROM deduction_configs WHERE id IN ({placeholders(len(ids))})", tuple(ids))
            return {int(r["id"]) for r in fetchall(cur)}


class MySQLStudentDeductionRepository(StudentDeductionRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_for_student(self, student_id: int) -> Sequence[StudentDeduction]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_CONFIG_COLUMNS}, sd.id AS student_deduction_id, sd.applied_count, sd.last_applied_date
                FROM deduction_configs dc
                LEFT JOIN student_deductions sd
                       ON sd.deduction_config_id = dc.id AND sd.student_id = %s
                WHERE dc.is_active = 1
                ORDER BY dc.id
                """,
                (int(student_id),),
            )
            return [_row_to_student_deduction(r) for r in fetchall(cur)]

    def list_attached(self, student_id: int) -> Sequence[StudentDeduction]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_CONFIG_COLUMNS}, sd.id AS student_deduction_id, sd.applied_count, sd.last_applied_date
                FROM student_deductions sd
                JOIN deduction_configs dc ON dc.id = sd.deduction_config_id
                WHERE sd.student_id = %s AND dc.is_active = 1
                ORDER BY dc.id
                """,
                (int(student_id),),
            )
            return [_row_to_student_deduction(r) for r in fetchall(cur)]

    def replace_for_student(self, student_id: int, config_ids: Sequence[int], *, applied_at: datetime) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM student_deductions WHERE student_id=%s", (int(student_id),))
            if config_ids:
                cur.executemany(
                    """
                    INSERT INTO student_deductions(student_id, deduction_config_id, applied_count, last_applied_date)
                    VALUES(%s,%s,0,%s)
                    """,
                    [(int(student_id), int(cid), applied_at) for cid in config_ids],
                )

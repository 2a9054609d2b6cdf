from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterable

import mysql.connector
from werkzeug.security import generate_password_hash

from ..core.constants import DEFAULT_ADMIN_PASSWORD, DEFAULT_ADMIN_USERNAME
from .connection import DBConfig

logger = logging.getLogger(__name__)

REQUIRED_TABLES = (
    "users",
    "user_sessions",
    "login_attempts",
    "students",
    "income",
    "classes",
    "deduction_configs",
    "student_deductions",
    "deduction_details",
    "operation_logs",
)

DEFAULT_DEDUCTIONS = [
    # (name, type, value, description, frequency)
    ("Registration fee", "fixed", 100, "Fixed fee charged when a new student enrolls", "once"),
    ("Textbook fee", "fixed", 200, "Textbooks handed to a new student", "once"),
    ("Enrollment fee", "fixed", 50, "Enrollment paperwork for a new student", "once"),
    ("Venue rent", "percentage", 15.0, "15% of income goes to venue rent", "multiple"),
    ("Management fee", "percentage", 10.0, "10% of income goes to management", "multiple"),
    ("Teacher hourly fee", "per_hour", 80, "Teacher pay, 80 per consumed class-hour", "multiple"),
    ("Utilities", "fixed", 50, "Fixed utilities charge per recharge", "multiple"),
]


def _strip_create_db_and_use(sql: str) -> str:
    # Keep schema.sql compatible regardless of DB name.
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)
    return sql


def _strip_comments(sql: str) -> str:
    return re.sub(r"(?m)^\s*--.*$", "", sql)


def iter_sql_statements(sql: str) -> Iterable[str]:
    # Minimal SQL splitter for schema files (handles ';' inside quotes).
    buf: list[str] = []
    in_single = False
    in_double = False
    escape = False

    for ch in sql:
        if escape:
            buf.append(ch)
            escape = False
            continue

        if ch == "\\":
            buf.append(ch)
            escape = True
            continue

        if ch == "'" and not in_double:
            in_single = not in_single
            buf.append(ch)
            continue

        if ch == '"' and not in_single:
            in_double = not in_double
            buf.append(ch)
            continue

        if ch == ";" and not in_single and not in_double:
            stmt = "".join(buf).strip()
            buf.clear()
            if stmt:
                yield stmt
            continue

        buf.append(ch)

    tail = "".join(buf).strip()
    if tail:
        yield tail


def _connect(target: DBConfig, *, with_database: bool = True):
    kwargs = dict(host=target.host, port=target.port, user=target.user, password=target.password, use_pure=True)
    if with_database:
        kwargs["database"] = target.database
    return mysql.connector.connect(**kwargs)


def ensure_database_exists(db_config: dict) -> None:
    target = DBConfig.from_dict(db_config)
    conn = _connect(target, with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{target.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci;"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(db_config: dict, *, schema_path: str | Path) -> None:
    target = DBConfig.from_dict(db_config)
    ensure_database_exists(db_config)

    sql = _strip_create_db_and_use(_strip_comments(Path(schema_path).read_text(encoding="utf-8")))

    conn = _connect(target)
    try:
        cur = conn.cursor()
        for stmt in iter_sql_statements(sql):
            cur.execute(stmt)
        conn.commit()
    finally:
        conn.close()
    logger.info("Schema applied to %s", target.describe())


def ensure_default_admin(db_config: dict) -> bool:
    """Create admin/admin123 when no admin account exists. Returns True if created."""
    target = DBConfig.from_dict(db_config)
    conn = _connect(target)
    try:
        cur = conn.cursor(dictionary=True)
        cur.execute("SELECT COUNT(*) AS cnt FROM users WHERE role='admin'")
        if int(cur.fetchone()["cnt"]) > 0:
            return False

        cur.execute(
            """
            INSERT INTO users(username, password_hash, role, real_name, email, is_active)
            VALUES(%s,%s,'admin',%s,%s,1)
            """,
            (
                DEFAULT_ADMIN_USERNAME,
                generate_password_hash(DEFAULT_ADMIN_PASSWORD),
                "System Administrator",
                "admin@example.com",
            ),
        )
        conn.commit()
    finally:
        conn.close()

    logger.warning(
        "Default admin created (username=%s). Change the default password immediately.",
        DEFAULT_ADMIN_USERNAME,
    )
    return True


def ensure_default_deductions(db_config: dict) -> int:
    """Seed example deduction configs when the table is empty. Returns rows inserted."""
    target = DBConfig.from_dict(db_config)
    conn = _connect(target)
    try:
        cur = conn.cursor(dictionary=True)
        cur.execute("SELECT COUNT(*) AS cnt FROM deduction_configs")
        if int(cur.fetchone()["cnt"]) > 0:
            return 0

        cur.executemany(
            """
            INSERT INTO deduction_configs(name, type, value, description, frequency, is_active)
            VALUES(%s,%s,%s,%s,%s,1)
            """,
            DEFAULT_DEDUCTIONS,
        )
        conn.commit()
    finally:
        conn.close()

    logger.info("Seeded %d default deduction configs", len(DEFAULT_DEDUCTIONS))
    return len(DEFAULT_DEDUCTIONS)


def list_tables(db_config: dict) -> list[str]:
    target = DBConfig.from_dict(db_config)
    conn = _connect(target)
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()


def missing_tables(db_config: dict) -> list[str]:
    present = {name.lower() for name in list_tables(db_config)}
    return [name for name in REQUIRED_TABLES if name not in present]

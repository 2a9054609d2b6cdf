from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import UserSession
from .session_repository import LoginAttemptRepository, SessionRepository


class MySQLSessionRepository(SessionRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create_session(self, *, user_id: int, token: str, expires_at: datetime) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO user_sessions(user_id, token, expires_at) VALUES(%s,%s,%s)",
                (user_id, token, expires_at),
            )
            return int(cur.lastrowid)

    def get_active(self, token: str, *, now: datetime) -> Optional[UserSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT id, user_id, token, expires_at
                FROM user_sessions
                WHERE token=%s AND expires_at > %s
                """,
                (token, now),
            )
            row = fetchone(cur)
            if not row:
                return None
            return UserSession(
                session_id=int(row["id"]),
                user_id=int(row["user_id"]),
                token=row["token"],
                expires_at=row["expires_at"],
            )

    def delete_by_token(self, token: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM user_sessions WHERE token=%s", (token,))
            return cur.rowcount > 0

    def delete_for_user(self, user_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM user_sessions WHERE user_id=%s", (user_id,))
            return int(cur.rowcount)

    def purge_expired(self, *, now: datetime) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM user_sessions WHERE expires_at < %s", (now,))
            return int(cur.rowcount)


class MySQLLoginAttemptRepository(LoginAttemptRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def record(self, *, username: str, ip_address: Optional[str], success: bool, at: datetime) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO login_attempts(username, ip_address, attempt_time, success) VALUES(%s,%s,%s,%s)",
                (username, ip_address, at, 1 if success else 0),
            )

    def count_recent_failures(self, *, username: str, ip_address: Optional[str], since: datetime) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COUNT(*) AS cnt
                FROM login_attempts
                WHERE username=%s AND ip_address <=> %s AND success=0 AND attempt_time > %s
                """,
                (username, ip_address, since),
            )
            row = fetchone(cur)
            return int(row["cnt"]) if row else 0

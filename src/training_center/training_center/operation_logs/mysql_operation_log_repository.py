from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .model import OperationLog
from .repository import OperationLogRepository


class MySQLOperationLogRepository(OperationLogRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        operation_type: str,
        target_id: int,
        target_type: str,
        description: Optional[str],
        user_id: Optional[int],
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO operation_logs(operation_type, target_id, target_type, description, user_id)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (operation_type, int(target_id), target_type, description, user_id),
            )
            return int(cur.lastrowid)

    def list_recent(self, *, limit: int) -> Sequence[OperationLog]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT l.id, l.operation_type, l.target_id, l.target_type, l.description,
                       l.user_id, l.created_at, u.username
                FROM operation_logs l
                LEFT JOIN users u ON u.id = l.user_id
                ORDER BY l.created_at DESC, l.id DESC
                LIMIT %s
                """,
                (int(limit),),
            )
            return [
                OperationLog(
                    log_id=int(r["id"]),
                    operation_type=r["operation_type"],
                    target_id=int(r["target_id"]),
                    target_type=r["target_type"],
                    description=r.get("description"),
                    user_id=r.get("user_id"),
                    created_at=r.get("created_at"),
                    username=r.get("username"),
                )
                for r in fetchall(cur)
            ]

    def count_by_type(self) -> Sequence[dict]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT operation_type, COUNT(*) AS count
                FROM operation_logs
                GROUP BY operation_type
                ORDER BY count DESC
                """
            )
            return [{"operation_type": r["operation_type"], "count": int(r["count"])} for r in fetchall(cur)]

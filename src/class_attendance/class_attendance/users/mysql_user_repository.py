from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause
from .model import User
from .repository import UserRepository


def _to_user(r: dict) -> User:
    return User(
        user_id=str(r["user_id"]),
        full_name=r["full_name"],
        role=Role(r["role"]),
        student_code=r.get("student_code"),
        is_active=bool(r.get("is_active", 1)),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: str) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT user_id, full_name, role, student_code, is_active FROM users WHERE user_id=%s",
                (str(user_id),),
            )
            r = fetchone(cur)
            return _to_user(r) if r else None

    def get_many(self, user_ids: Sequence[str]) -> Sequence[User]:
        ids = [str(u) for u in user_ids]
        if not ids:
            return []
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT user_id, full_name, role, student_code, is_active
                FROM users
                WHERE user_id IN ({in_clause(ids)})
                """,
                tuple(ids),
            )
            return [_to_user(r) for r in fetchall(cur)]

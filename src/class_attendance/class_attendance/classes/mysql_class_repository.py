from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import TeachingClass
from .repository import TeachingClassRepository


class MySQLTeachingClassRepository(TeachingClassRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, teaching_class_id: str) -> Optional[TeachingClass]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT teaching_class_id, class_name, class_code, teacher_id, total_sessions, max_absent_allowed
                FROM teaching_classes
                WHERE teaching_class_id=%s
                """,
                (str(teaching_class_id),),
            )
            r = fetchone(cur)
            if not r:
                return None

            cur.execute(
                """
                SELECT student_id
                FROM class_students
                WHERE teaching_class_id=%s
                ORDER BY position ASC, student_id ASC
                """,
                (str(teaching_class_id),),
            )
            students = tuple(str(row["student_id"]) for row in fetchall(cur))

            max_absent = r.get("max_absent_allowed")
            return TeachingClass(
                teaching_class_id=str(r["teaching_class_id"]),
                class_name=r["class_name"],
                class_code=r.get("class_code"),
                teacher_id=str(r["teacher_id"]),
                total_sessions=int(r["total_sessions"]),
                max_absent_allowed=int(max_absent) if max_absent is not None else None,
                student_ids=students,
            )

    def list_ids_for_teacher(self, teacher_id: str) -> Sequence[str]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT teaching_class_id FROM teaching_classes WHERE teacher_id=%s",
                (str(teacher_id),),
            )
            return [str(r["teaching_class_id"]) for r in fetchall(cur)]

from __future__ import annotations

from typing import Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .model import StudentScore
from .repository import StudentScoreRepository

_SCORE_COLUMNS = """
    student_id, teaching_class_id, total_sessions, absent_sessions, attendance_score,
    max_absent_allowed, is_failed_due_to_absent, last_updated
"""


def _to_score(r: dict) -> StudentScore:
    return StudentScore(
        student_id=str(r["student_id"]),
        teaching_class_id=str(r["teaching_class_id"]),
        total_sessions=int(r["total_sessions"]),
        absent_sessions=int(r["absent_sessions"]),
        attendance_score=int(r["attendance_score"]),
        max_absent_allowed=int(r["max_absent_allowed"]),
        is_failed_due_to_absent=bool(r["is_failed_due_to_absent"]),
        last_updated=r["last_updated"],
    )


class MySQLStudentScoreRepository(StudentScoreRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def replace_for_class(self, teaching_class_id: str, scores: Sequence[StudentScore]) -> None:
        if not scores:
            return
        with db_cursor(self._conn_factory) as (_, cur):
            cur.executemany(
                """
                INSERT INTO student_scores(
                    student_id, teaching_class_id, total_sessions, absent_sessions, attendance_score,
                    max_absent_allowed, is_failed_due_to_absent, last_updated
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    total_sessions=VALUES(total_sessions),
                    absent_sessions=VALUES(absent_sessions),
                    attendance_score=VALUES(attendance_score),
                    max_absent_allowed=VALUES(max_absent_allowed),
                    is_failed_due_to_absent=VALUES(is_failed_due_to_absent),
                    last_updated=VALUES(last_updated)
                """,
                [
                    (
                        s.student_id,
                        str(teaching_class_id),
                        s.total_sessions,
                        s.absent_sessions,
                        s.attendance_score,
                        s.max_absent_allowed,
                        int(s.is_failed_due_to_absent),
                        s.last_updated,
                    )
                    for s in scores
                ],
            )

    def list_for_class(self, teaching_class_id: str) -> Sequence[StudentScore]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_SCORE_COLUMNS} FROM student_scores WHERE teaching_class_id=%s ORDER BY student_id ASC",
                (str(teaching_class_id),),
            )
            return [_to_score(r) for r in fetchall(cur)]

    def list_for_student(self, student_id: str) -> Sequence[StudentScore]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_SCORE_COLUMNS} FROM student_scores WHERE student_id=%s ORDER BY last_updated DESC",
                (str(student_id),),
            )
            return [_to_score(r) for r in fetchall(cur)]

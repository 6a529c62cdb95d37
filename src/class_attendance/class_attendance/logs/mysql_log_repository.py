from __future__ import annotations

from datetime import datetime
from typing import Mapping, Optional, Sequence

from ..core.enums import LogStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause
from .model import AttendanceLog
from .repository import AttendanceLogRepository

_LOG_COLUMNS = """
    log_id, session_id, student_id, status, recognized, recognized_confidence,
    captured_face_url, note, logged_at
"""


def _to_log(r: dict) -> AttendanceLog:
    confidence = r.get("recognized_confidence")
    return AttendanceLog(
        log_id=int(r["log_id"]),
        session_id=int(r["session_id"]),
        student_id=str(r["student_id"]),
        status=LogStatus(r["status"]),
        recognized=bool(r["recognized"]),
        recognized_confidence=float(confidence) if confidence is not None else None,
        captured_face_url=r.get("captured_face_url"),
        note=r.get("note"),
        timestamp=r["logged_at"],
    )


def read_log(cur, session_id: int, student_id: str) -> Optional[AttendanceLog]:
    cur.execute(
        f"SELECT {_LOG_COLUMNS} FROM attendance_logs WHERE session_id=%s AND student_id=%s",
        (int(session_id), str(student_id)),
    )
    r = fetchone(cur)
    return _to_log(r) if r else None


def write_log(
    cur,
    *,
    session_id: int,
    student_id: str,
    status: LogStatus,
    recognized: bool,
    timestamp: datetime,
    recognized_confidence: Optional[float] = None,
    captured_face_url: Optional[str] = None,
    note: Optional[str] = None,
) -> None:
    """Create the (session, student) log or overwrite every field of it.

    Runs on the caller's cursor so it joins the caller's transaction.
    """
    cur.execute(
        """
        INSERT INTO attendance_logs(
            session_id, student_id, status, recognized, recognized_confidence,
            captured_face_url, note, logged_at
        )
        VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
        ON DUPLICATE KEY UPDATE
            status=VALUES(status),
            recognized=VALUES(recognized),
            recognized_confidence=VALUES(recognized_confidence),
            captured_face_url=VALUES(captured_face_url),
            note=VALUES(note),
            logged_at=VALUES(logged_at)
        """,
        (
            int(session_id),
            str(student_id),
            status.value,
            int(bool(recognized)),
            recognized_confidence,
            captured_face_url,
            note,
            timestamp,
        ),
    )


class MySQLAttendanceLogRepository(AttendanceLogRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_for_session_and_student(self, session_id: int, student_id: str) -> Optional[AttendanceLog]:
        with db_cursor(self._conn_factory) as (_, cur):
            return read_log(cur, session_id, student_id)

    def list_for_session(self, session_id: int, *, student_id: Optional[str] = None) -> Sequence[AttendanceLog]:
        clauses = ["session_id=%s"]
        params: list[object] = [int(session_id)]
        if student_id is not None:
            clauses.append("student_id=%s")
            params.append(str(student_id))

        where = " AND ".join(clauses)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_LOG_COLUMNS} FROM attendance_logs WHERE {where} ORDER BY logged_at DESC",
                tuple(params),
            )
            return [_to_log(r) for r in fetchall(cur)]

    def list_for_student(self, student_id: str) -> Sequence[AttendanceLog]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_LOG_COLUMNS} FROM attendance_logs WHERE student_id=%s ORDER BY logged_at DESC",
                (str(student_id),),
            )
            return [_to_log(r) for r in fetchall(cur)]

    def list_for_sessions(self, session_ids: Sequence[int]) -> Sequence[AttendanceLog]:
        ids = [int(s) for s in session_ids]
        if not ids:
            return []
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_LOG_COLUMNS} FROM attendance_logs WHERE session_id IN ({in_clause(ids)})",
                tuple(ids),
            )
            return [_to_log(r) for r in fetchall(cur)]

    def count_absent_by_student(self, session_ids: Sequence[int]) -> Mapping[str, int]:
        ids = [int(s) for s in session_ids]
        if not ids:
            return {}
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT student_id, COUNT(*) AS absent_count
                FROM attendance_logs
                WHERE session_id IN ({in_clause(ids)}) AND status=%s
                GROUP BY student_id
                """,
                (*ids, LogStatus.ABSENT.value),
            )
            return {str(r["student_id"]): int(r["absent_count"]) for r in fetchall(cur)}

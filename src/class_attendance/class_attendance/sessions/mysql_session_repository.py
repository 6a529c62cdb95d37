from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

import mysql.connector

from ..core.enums import CheckType, LogStatus, SessionStatus
from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause, is_duplicate_key
from ..logs.model import AttendanceLog
from ..logs.mysql_log_repository import read_log, write_log
from .model import AttendanceSession, PresentEntry
from .repository import SessionRepository

_SESSION_COLUMNS = """
    session_id, teaching_class_id, session_number, session_date, room_id,
    status, start_time, end_time, notes, started_by
"""


class MySQLSessionRepository(SessionRepository):
    """Sessions plus the normalized ``session_present`` / ``session_absent`` relations.

    Both relations have (session_id, student_id) as primary key, so a student
    can appear at most once on each side. A check-in writes the log and moves
    the student in one transaction holding a row lock on the session.
    """

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _load_rosters(self, cur, session_ids: Sequence[int]) -> tuple[dict, dict]:
        present: dict[int, list[PresentEntry]] = {sid: [] for sid in session_ids}
        absent: dict[int, list[str]] = {sid: [] for sid in session_ids}
        if not session_ids:
            return present, absent

        placeholders = in_clause(session_ids)
        cur.execute(
            f"""
            SELECT session_id, student_id, checked_at, check_type
            FROM session_present
            WHERE session_id IN ({placeholders})
            ORDER BY checked_at ASC, student_id ASC
            """,
            tuple(session_ids),
        )
        for r in fetchall(cur):
            present[int(r["session_id"])].append(
                PresentEntry(
                    student_id=str(r["student_id"]),
                    timestamp=r["checked_at"],
                    check_type=CheckType(r["check_type"]),
                )
            )

        cur.execute(
            f"""
            SELECT session_id, student_id
            FROM session_absent
            WHERE session_id IN ({placeholders})
            ORDER BY student_id ASC
            """,
            tuple(session_ids),
        )
        for r in fetchall(cur):
            absent[int(r["session_id"])].append(str(r["student_id"]))

        return present, absent

    def _hydrate(self, cur, rows: list[dict]) -> list[AttendanceSession]:
        ids = [int(r["session_id"]) for r in rows]
        present, absent = self._load_rosters(cur, ids)
        return [
            AttendanceSession(
                session_id=int(r["session_id"]),
                teaching_class_id=str(r["teaching_class_id"]),
                session_number=int(r["session_number"]),
                session_date=r["session_date"],
                room_id=r.get("room_id"),
                status=SessionStatus(r["status"]),
                start_time=r.get("start_time"),
                end_time=r.get("end_time"),
                notes=r.get("notes"),
                started_by=r.get("started_by"),
                students_present=tuple(present[int(r["session_id"])]),
                students_absent=tuple(absent[int(r["session_id"])]),
            )
            for r in rows
        ]

    def get_by_id(self, session_id: int) -> Optional[AttendanceSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_SESSION_COLUMNS} FROM attendance_sessions WHERE session_id=%s", (int(session_id),))
            r = fetchone(cur)
            if not r:
                return None
            return self._hydrate(cur, [r])[0]

    def get_by_slot(self, teaching_class_id: str, session_number: int) -> Optional[AttendanceSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_SESSION_COLUMNS}
                FROM attendance_sessions
                WHERE teaching_class_id=%s AND session_number=%s
                """,
                (str(teaching_class_id), int(session_number)),
            )
            r = fetchone(cur)
            if not r:
                return None
            return self._hydrate(cur, [r])[0]

    def create(
        self,
        *,
        teaching_class_id: str,
        session_number: int,
        session_date: date,
        room_id: Optional[str],
        status: SessionStatus,
        start_time: Optional[datetime],
        started_by: Optional[str],
        absent_student_ids: Sequence[str],
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            try:
                cur.execute(
                    """
                    INSERT INTO attendance_sessions(
                        teaching_class_id, session_number, session_date, room_id, status, start_time, started_by
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (str(teaching_class_id), int(session_number), session_date, room_id, status.value, start_time, started_by),
                )
            except mysql.connector.IntegrityError as e:
                if is_duplicate_key(e):
                    raise ConflictError("Attendance session already exists") from e
                raise

            session_id = int(cur.lastrowid)
            if absent_student_ids:
                cur.executemany(
                    "INSERT INTO session_absent(session_id, student_id) VALUES(%s,%s)",
                    [(session_id, str(sid)) for sid in absent_student_ids],
                )
            return session_id

    def update_status(self, *, session_id: int, status: SessionStatus, start_time: Optional[datetime]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE attendance_sessions SET status=%s, start_time=%s WHERE session_id=%s",
                (status.value, start_time, int(session_id)),
            )
            return cur.rowcount > 0

    def update_notes(self, *, session_id: int, notes: Optional[str]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE attendance_sessions SET notes=%s WHERE session_id=%s",
                (notes, int(session_id)),
            )
            return cur.rowcount > 0

    def _lock_session(self, cur, session_id: int) -> None:
        cur.execute("SELECT session_id FROM attendance_sessions WHERE session_id=%s FOR UPDATE", (int(session_id),))
        fetchone(cur)

    def record_checkin(
        self,
        *,
        session_id: int,
        student_id: str,
        status: LogStatus,
        check_type: CheckType,
        timestamp: datetime,
        recognized_confidence: Optional[float] = None,
        captured_face_url: Optional[str] = None,
        note: Optional[str] = None,
    ) -> AttendanceLog:
        sid, student = int(session_id), str(student_id)
        with db_cursor(self._conn_factory) as (_, cur):
            self._lock_session(cur, sid)
            write_log(
                cur,
                session_id=sid,
                student_id=student,
                status=status,
                recognized=check_type == CheckType.AUTO,
                timestamp=timestamp,
                recognized_confidence=recognized_confidence,
                captured_face_url=captured_face_url,
                note=note,
            )

            if status == LogStatus.PRESENT:
                cur.execute("DELETE FROM session_absent WHERE session_id=%s AND student_id=%s", (sid, student))
                cur.execute(
                    """
                    INSERT IGNORE INTO session_present(session_id, student_id, checked_at, check_type)
                    VALUES(%s,%s,%s,%s)
                    """,
                    (sid, student, timestamp, check_type.value),
                )
            else:
                cur.execute("DELETE FROM session_present WHERE session_id=%s AND student_id=%s", (sid, student))
                cur.execute("INSERT IGNORE INTO session_absent(session_id, student_id) VALUES(%s,%s)", (sid, student))

            return read_log(cur, sid, student)

    def list_page(
        self,
        *,
        offset: int,
        limit: int,
        started_by: Optional[str] = None,
    ) -> tuple[Sequence[AttendanceSession], int]:
        where, params = "", ()
        if started_by is not None:
            where, params = "WHERE started_by=%s", (str(started_by),)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM attendance_sessions {where}", params)
            total = int(fetchone(cur)["total"])
            cur.execute(
                f"""
                SELECT {_SESSION_COLUMNS}
                FROM attendance_sessions
                {where}
                ORDER BY session_date DESC, session_id DESC
                LIMIT %s OFFSET %s
                """,
                (*params, int(limit), int(offset)),
            )
            return self._hydrate(cur, fetchall(cur)), total

    def list_for_class(
        self,
        teaching_class_id: str,
        *,
        status: Optional[SessionStatus] = None,
    ) -> Sequence[AttendanceSession]:
        clauses = ["teaching_class_id=%s"]
        params: list[object] = [str(teaching_class_id)]
        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)

        where = " AND ".join(clauses)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_SESSION_COLUMNS}
                FROM attendance_sessions
                WHERE {where}
                ORDER BY session_number ASC
                """,
                tuple(params),
            )
            return self._hydrate(cur, fetchall(cur))

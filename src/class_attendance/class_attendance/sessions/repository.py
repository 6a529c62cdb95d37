from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import CheckType, LogStatus, SessionStatus
from ..logs.model import AttendanceLog
from .model import AttendanceSession


class SessionRepository(Protocol):
    def get_by_id(self, session_id: int) -> Optional[AttendanceSession]:
        raise NotImplementedError

    def get_by_slot(self, teaching_class_id: str, session_number: int) -> Optional[AttendanceSession]:
        raise NotImplementedError

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
        """Insert a session with every listed student absent.

        Raises ``ConflictError`` when (teaching_class_id, session_number) is taken.
        """

        raise NotImplementedError

    def update_status(self, *, session_id: int, status: SessionStatus, start_time: Optional[datetime]) -> bool:
        raise NotImplementedError

    def update_notes(self, *, session_id: int, notes: Optional[str]) -> bool:
        raise NotImplementedError

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
        """Write the (session, student) log and move the student in one transaction.

        ``present`` puts the student in the present set; any other status puts
        them in the absent set. An existing present entry keeps its original
        timestamp and check type. Either both changes persist or neither does.
        """

        raise NotImplementedError

    def list_page(
        self,
        *,
        offset: int,
        limit: int,
        started_by: Optional[str] = None,
    ) -> tuple[Sequence[AttendanceSession], int]:
        """One page of sessions, newest date first, plus the total matching count."""

        raise NotImplementedError

    def list_for_class(
        self,
        teaching_class_id: str,
        *,
        status: Optional[SessionStatus] = None,
    ) -> Sequence[AttendanceSession]:
        """Sessions of a class ordered by session_number."""

        raise NotImplementedError

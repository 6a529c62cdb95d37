from __future__ import annotations

from typing import Mapping, Optional, Protocol, Sequence

from .model import AttendanceLog


class AttendanceLogRepository(Protocol):
    def get_for_session_and_student(self, session_id: int, student_id: str) -> Optional[AttendanceLog]:
        raise NotImplementedError

    def list_for_session(self, session_id: int, *, student_id: Optional[str] = None) -> Sequence[AttendanceLog]:
        """Newest first."""

        raise NotImplementedError

    def list_for_student(self, student_id: str) -> Sequence[AttendanceLog]:
        raise NotImplementedError

    def list_for_sessions(self, session_ids: Sequence[int]) -> Sequence[AttendanceLog]:
        raise NotImplementedError

    def count_absent_by_student(self, session_ids: Sequence[int]) -> Mapping[str, int]:
        """Number of ``absent`` logs per student across the given sessions."""

        raise NotImplementedError

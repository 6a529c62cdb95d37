from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from ..common.datetime_utils import iso
from ..core.enums import CheckType, SessionStatus


@dataclass(frozen=True)
class PresentEntry:
    student_id: str
    timestamp: datetime
    check_type: CheckType

    def to_dict(self) -> dict:
        return {
            "student_id": self.student_id,
            "timestamp": iso(self.timestamp),
            "check_type": self.check_type.value,
        }


@dataclass(frozen=True)
class AttendanceSession:
    """Domain entity: one attendance-tracked meeting of a teaching class.

    ``students_present`` and ``students_absent`` together partition the
    class roster.
    """

    session_id: int
    teaching_class_id: str
    session_number: int
    session_date: date
    status: SessionStatus
    room_id: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    notes: Optional[str] = None
    started_by: Optional[str] = None
    students_present: tuple[PresentEntry, ...] = field(default_factory=tuple)
    students_absent: tuple[str, ...] = field(default_factory=tuple)

    @property
    def present_ids(self) -> set[str]:
        return {p.student_id for p in self.students_present}

    def to_dict(self) -> dict:
        return {
            "id": self.session_id,
            "teaching_class_id": self.teaching_class_id,
            "session_number": self.session_number,
            "date": iso(self.session_date),
            "room": self.room_id,
            "status": self.status.value,
            "start_time": iso(self.start_time),
            "end_time": iso(self.end_time),
            "notes": self.notes,
            "started_by": self.started_by,
            "students_present": [p.to_dict() for p in self.students_present],
            "students_absent": list(self.students_absent),
        }


@dataclass(frozen=True)
class CheckinMetadata:
    """Extra fields recorded on the log by a check-in."""

    confidence: Optional[float] = None
    captured_face_url: Optional[str] = None
    note: Optional[str] = None


@dataclass(frozen=True)
class SessionPage:
    items: tuple[AttendanceSession, ...]
    page: int
    limit: int
    total_count: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_count / self.limit)

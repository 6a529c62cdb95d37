from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from ..common.datetime_utils import iso


@dataclass(frozen=True)
class StudentScore:
    """Derived attendance score of one student in one teaching class.

    Always produced by recomputation; never edited by hand.
    """

    student_id: str
    teaching_class_id: str
    total_sessions: int
    absent_sessions: int
    attendance_score: int
    max_absent_allowed: int
    is_failed_due_to_absent: bool
    last_updated: datetime

    def to_dict(self) -> dict:
        return {
            "student_id": self.student_id,
            "teaching_class_id": self.teaching_class_id,
            "total_sessions": self.total_sessions,
            "absent_sessions": self.absent_sessions,
            "attendance_score": self.attendance_score,
            "max_absent_allowed": self.max_absent_allowed,
            "is_failed_due_to_absent": self.is_failed_due_to_absent,
            "last_updated": iso(self.last_updated),
        }


@dataclass(frozen=True)
class ClassAttendanceStats:
    """Read-model for the per-class attendance overview."""

    teaching_class_id: str
    class_name: str
    total_sessions: int
    max_absent_allowed: int
    sessions_completed: int
    student_stats: list[dict]
    session_stats: list[dict]

    def to_dict(self) -> dict:
        return {
            "class_info": {
                "id": self.teaching_class_id,
                "class_name": self.class_name,
                "total_sessions": self.total_sessions,
                "max_absent_allowed": self.max_absent_allowed,
            },
            "sessions_completed": self.sessions_completed,
            "total_sessions": self.total_sessions,
            "student_stats": self.student_stats,
            "session_stats": self.session_stats,
        }

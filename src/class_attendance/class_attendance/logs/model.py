from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import iso
from ..core.enums import LogStatus


@dataclass(frozen=True)
class AttendanceLog:
    """Domain entity: the latest check-in of one student for one session."""

    log_id: int
    session_id: int
    student_id: str
    status: LogStatus
    recognized: bool
    timestamp: datetime
    recognized_confidence: Optional[float] = None
    captured_face_url: Optional[str] = None
    note: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.log_id,
            "session_id": self.session_id,
            "student_id": self.student_id,
            "status": self.status.value,
            "recognized": self.recognized,
            "recognized_confidence": self.recognized_confidence,
            "captured_face_url": self.captured_face_url,
            "note": self.note,
            "timestamp": iso(self.timestamp),
        }

from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Role claim carried by the authenticated requester."""

    STUDENT = "student"
    TEACHER = "teacher"
    ADMIN = "admin"


class SessionStatus(str, Enum):
    """Lifecycle of an attendance session."""

    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"


class LogStatus(str, Enum):
    """Status recorded on a per-student attendance log."""

    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"


class CheckType(str, Enum):
    """How a student was checked in: by hand or by face match."""

    MANUAL = "manual"
    AUTO = "auto"

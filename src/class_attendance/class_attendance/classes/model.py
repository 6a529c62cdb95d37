from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from ..core.constants import DEFAULT_MAX_ABSENT_ALLOWED


@dataclass(frozen=True)
class TeachingClass:
    """Read model of a course instance, owned by course management.

    ``student_ids`` keeps enrollment order and holds each student once.
    """

    teaching_class_id: str
    class_name: str
    teacher_id: str
    total_sessions: int
    student_ids: tuple[str, ...] = field(default_factory=tuple)
    max_absent_allowed: Optional[int] = DEFAULT_MAX_ABSENT_ALLOWED
    class_code: Optional[str] = None

    @property
    def effective_max_absent(self) -> int:
        if self.max_absent_allowed is None:
            return DEFAULT_MAX_ABSENT_ALLOWED
        return int(self.max_absent_allowed)

    def is_enrolled(self, student_id: str) -> bool:
        return str(student_id) in self.student_ids

from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import TeachingClass


class TeachingClassRepository(Protocol):
    """Roster lookup. Read-only from the attendance side."""

    def get_by_id(self, teaching_class_id: str) -> Optional[TeachingClass]:
        raise NotImplementedError

    def list_ids_for_teacher(self, teacher_id: str) -> Sequence[str]:
        raise NotImplementedError

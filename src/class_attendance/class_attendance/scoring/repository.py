from __future__ import annotations

from typing import Protocol, Sequence

from .model import StudentScore


class StudentScoreRepository(Protocol):
    def replace_for_class(self, teaching_class_id: str, scores: Sequence[StudentScore]) -> None:
        """Upsert every (student, class) score in one transaction."""

        raise NotImplementedError

    def list_for_class(self, teaching_class_id: str) -> Sequence[StudentScore]:
        raise NotImplementedError

    def list_for_student(self, student_id: str) -> Sequence[StudentScore]:
        """Most recently updated first."""

        raise NotImplementedError

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


class AccessPolicy(ABC):
    """What a requester may do with one teaching class (and its sessions).

    Resolved once per operation by ``AccessPolicyFactory``; services ask the
    policy instead of comparing role strings themselves.
    """

    name: str = "other"

    @abstractmethod
    def can_manage(self) -> bool:
        """Create sessions, change status/notes, manual check-in, recompute scores."""
        raise NotImplementedError

    @abstractmethod
    def can_view_class(self) -> bool:
        raise NotImplementedError

    @abstractmethod
    def can_view_all_logs(self) -> bool:
        raise NotImplementedError

    def can_check_in(self, student_id: str) -> bool:
        return self.can_manage()


class AdminAccess(AccessPolicy):
    name = "admin"

    def can_manage(self) -> bool:
        return True

    def can_view_class(self) -> bool:
        return True

    def can_view_all_logs(self) -> bool:
        return True


class OwningTeacherAccess(AccessPolicy):
    """Teacher of the class, or the teacher who started the session."""

    name = "owning_teacher"

    def can_manage(self) -> bool:
        return True

    def can_view_class(self) -> bool:
        return True

    def can_view_all_logs(self) -> bool:
        return True


@dataclass(frozen=True)
class EnrolledStudentAccess(AccessPolicy):
    student_id: str
    name = "enrolled_student"

    def can_manage(self) -> bool:
        return False

    def can_view_class(self) -> bool:
        return True

    def can_view_all_logs(self) -> bool:
        return False

    def can_check_in(self, student_id: str) -> bool:
        return str(student_id) == self.student_id


class OtherAccess(AccessPolicy):
    name = "other"

    def can_manage(self) -> bool:
        return False

    def can_view_class(self) -> bool:
        return False

    def can_view_all_logs(self) -> bool:
        return False

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..classes.model import TeachingClass
from ..core.enums import Role
from ..sessions.model import AttendanceSession
from ..users.model import Requester
from .policy import AccessPolicy, AdminAccess, EnrolledStudentAccess, OtherAccess, OwningTeacherAccess


@dataclass
class AccessPolicyFactory:
    """Factory Pattern: choose the access policy for a requester and a class."""

    def for_class(
        self,
        requester: Requester,
        teaching_class: TeachingClass,
        session: Optional[AttendanceSession] = None,
    ) -> AccessPolicy:
        if requester.is_admin:
            return AdminAccess()

        if requester.user_id == teaching_class.teacher_id:
            return OwningTeacherAccess()
        if session is not None and session.started_by and requester.user_id == session.started_by:
            return OwningTeacherAccess()

        if requester.role == Role.STUDENT and teaching_class.is_enrolled(requester.user_id):
            return EnrolledStudentAccess(student_id=requester.user_id)

        return OtherAccess()

from __future__ import annotations

from typing import Optional, Sequence

from ..access.factory import AccessPolicyFactory
from ..classes.repository import TeachingClassRepository
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, NotFoundError
from ..sessions.repository import SessionRepository
from ..users.model import Requester
from .model import AttendanceLog
from .repository import AttendanceLogRepository


class AttendanceLogService:
    """Read paths over attendance logs with role-based visibility."""

    def __init__(
        self,
        logs: AttendanceLogRepository,
        sessions: SessionRepository,
        classes: TeachingClassRepository,
        *,
        access: Optional[AccessPolicyFactory] = None,
    ):
        self._logs = logs
        self._sessions = sessions
        self._classes = classes
        self._access = access or AccessPolicyFactory()

    def list_for_session(
        self,
        *,
        session_id: int,
        requester: Requester,
        student_id: Optional[str] = None,
    ) -> Sequence[AttendanceLog]:
        session = self._sessions.get_by_id(int(session_id))
        if not session:
            raise NotFoundError("Attendance session not found")
        tc = self._classes.get_by_id(session.teaching_class_id)
        if not tc:
            raise NotFoundError("Teaching class not found")

        policy = self._access.for_class(requester, tc, session)
        if not policy.can_view_class():
            raise AuthorizationError("You are not allowed to view logs of this session")

        # Students only ever see their own row.
        if not policy.can_view_all_logs():
            student_id = requester.user_id

        return self._logs.list_for_session(session.session_id, student_id=student_id)

    def list_for_student(self, *, student_id: str, requester: Requester) -> Sequence[AttendanceLog]:
        student_id = str(student_id)
        if requester.is_admin:
            return self._logs.list_for_student(student_id)
        if requester.role == Role.TEACHER:
            owned = set(self._classes.list_ids_for_teacher(requester.user_id))
            class_by_session: dict[int, str] = {}
            visible = []
            for log in self._logs.list_for_student(student_id):
                if log.session_id not in class_by_session:
                    session = self._sessions.get_by_id(log.session_id)
                    class_by_session[log.session_id] = session.teaching_class_id if session else ""
                if class_by_session[log.session_id] in owned:
                    visible.append(log)
            return visible
        if requester.user_id == student_id:
            return self._logs.list_for_student(student_id)
        raise AuthorizationError("You are not allowed to view this student's attendance history")

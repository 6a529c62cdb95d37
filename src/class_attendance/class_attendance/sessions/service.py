from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional, Sequence

from ..access.factory import AccessPolicyFactory
from ..access.policy import AccessPolicy
from ..classes.model import TeachingClass
from ..classes.repository import TeachingClassRepository
from ..common.datetime_utils import now_local
from ..common.locks import KeyedLock
from ..common.validators import optional_text, parse_enum, require_positive_int
from ..core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from ..core.enums import CheckType, LogStatus, Role, SessionStatus
from ..core.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    RuleViolationError,
    ValidationError,
)
from ..logs.model import AttendanceLog
from ..scoring.service import ScoringService
from ..users.model import Requester
from .model import AttendanceSession, CheckinMetadata, SessionPage
from .repository import SessionRepository

logger = logging.getLogger(__name__)


class SessionService:
    """Attendance session engine.

    Owns the session lifecycle and the present/absent reconciliation shared by
    every check-in path. Mutations of one session are serialized in-process by
    ``session_locks``; the MySQL repository also takes a row lock.
    """

    def __init__(
        self,
        sessions: SessionRepository,
        classes: TeachingClassRepository,
        scoring: ScoringService,
        *,
        access: AccessPolicyFactory | None = None,
        session_locks: KeyedLock | None = None,
    ):
        self._sessions = sessions
        self._classes = classes
        self._scoring = scoring
        self._access = access or AccessPolicyFactory()
        self._locks = session_locks or KeyedLock()

    def _get_class(self, teaching_class_id: str) -> TeachingClass:
        tc = self._classes.get_by_id(str(teaching_class_id))
        if not tc:
            raise NotFoundError("Teaching class not found")
        return tc

    def _get_session(self, session_id: int) -> AttendanceSession:
        session = self._sessions.get_by_id(int(session_id))
        if not session:
            raise NotFoundError("Attendance session not found")
        return session

    def load(self, session_id: int) -> tuple[AttendanceSession, TeachingClass]:
        session = self._get_session(session_id)
        return session, self._get_class(session.teaching_class_id)

    def policy_for(
        self,
        requester: Requester,
        teaching_class: TeachingClass,
        session: AttendanceSession | None = None,
    ) -> AccessPolicy:
        return self._access.for_class(requester, teaching_class, session)

    def _require_manage(self, requester: Requester, tc: TeachingClass, session: AttendanceSession | None = None) -> None:
        if not self.policy_for(requester, tc, session).can_manage():
            logger.warning(
                "Rejected session mutation by %s (%s) on class %s",
                requester.user_id,
                requester.role.value,
                tc.teaching_class_id,
            )
            raise AuthorizationError("You are not allowed to manage attendance for this class")

    def create(
        self,
        *,
        teaching_class_id: str,
        session_number,
        requester: Requester,
        session_date: date | None = None,
        room_id: str | None = None,
        now: datetime | None = None,
    ) -> AttendanceSession:
        now = now or now_local()
        tc = self._get_class(teaching_class_id)
        self._require_manage(requester, tc)

        number = require_positive_int(session_number, "session_number")
        if number > tc.total_sessions:
            raise ValidationError("session_number exceeds the class's total sessions")

        with self._locks.hold(("slot", tc.teaching_class_id)):
            if self._sessions.get_by_slot(tc.teaching_class_id, number):
                raise ConflictError("Attendance session already exists")

            session_id = self._sessions.create(
                teaching_class_id=tc.teaching_class_id,
                session_number=number,
                session_date=session_date or now.date(),
                room_id=optional_text(room_id),
                status=SessionStatus.ACTIVE,
                start_time=now,
                started_by=requester.user_id,
                absent_student_ids=list(tc.student_ids),
            )

        logger.info(
            "Created session %s (#%s) for class %s with %d students absent",
            session_id,
            number,
            tc.teaching_class_id,
            len(tc.student_ids),
        )
        return self._get_session(session_id)

    def transition_status(
        self,
        *,
        session_id: int,
        new_status,
        requester: Requester,
        now: datetime | None = None,
    ) -> AttendanceSession:
        """Move a session to any of pending/active/completed.

        Completing a session recomputes the class scores before returning; if
        that fails the previous status is restored and the error propagates.
        End time is left untouched on completion.
        """
        status = parse_enum(SessionStatus, new_status, "status")
        now = now or now_local()

        with self._locks.hold(int(session_id)):
            session, tc = self.load(session_id)
            self._require_manage(requester, tc, session)

            start_time = session.start_time
            if status == SessionStatus.ACTIVE and start_time is None:
                start_time = now

            self._sessions.update_status(session_id=session.session_id, status=status, start_time=start_time)
            logger.info("Session %s: %s -> %s", session.session_id, session.status.value, status.value)

            if status == SessionStatus.COMPLETED:
                try:
                    self._scoring.recompute(tc.teaching_class_id, now=now)
                except Exception:
                    self._sessions.update_status(
                        session_id=session.session_id,
                        status=session.status,
                        start_time=session.start_time,
                    )
                    logger.exception("Score recomputation failed; session %s reverted", session.session_id)
                    raise

        return self._get_session(session_id)

    def update_notes(self, *, session_id: int, notes: Optional[str], requester: Requester) -> AttendanceSession:
        with self._locks.hold(int(session_id)):
            session, tc = self.load(session_id)
            self._require_manage(requester, tc, session)
            self._sessions.update_notes(session_id=session.session_id, notes=optional_text(notes))
        return self._get_session(session_id)

    def ensure_checkin_allowed(self, session: AttendanceSession, tc: TeachingClass, student_id: str) -> None:
        if session.status != SessionStatus.ACTIVE:
            raise RuleViolationError("Attendance session is not active")
        if not tc.is_enrolled(student_id):
            raise ValidationError("Student is not enrolled in this class")

    def reconcile(
        self,
        *,
        session_id: int,
        student_id: str,
        new_status: LogStatus,
        check_type: CheckType,
        metadata: CheckinMetadata | None = None,
        now: datetime | None = None,
    ) -> AttendanceLog:
        """Record a check-in and move the student to the matching side of the roster.

        Safe to repeat: the log is overwritten (last write wins) and the
        student ends up on exactly one side.
        """
        metadata = metadata or CheckinMetadata()
        now = now or now_local()
        student_id = str(student_id)

        with self._locks.hold(int(session_id)):
            session, tc = self.load(session_id)
            self.ensure_checkin_allowed(session, tc, student_id)

            log = self._sessions.record_checkin(
                session_id=session.session_id,
                student_id=student_id,
                status=new_status,
                check_type=check_type,
                timestamp=now,
                recognized_confidence=metadata.confidence if check_type == CheckType.AUTO else None,
                captured_face_url=metadata.captured_face_url,
                note=metadata.note,
            )

        logger.info(
            "Session %s: student %s marked %s (%s)",
            session.session_id,
            student_id,
            new_status.value,
            check_type.value,
        )
        return log

    def get(self, *, session_id: int, requester: Requester) -> AttendanceSession:
        session, tc = self.load(session_id)
        if not self.policy_for(requester, tc, session).can_view_class():
            raise AuthorizationError("You are not allowed to view this attendance session")
        return session

    def list_for_class(self, *, teaching_class_id: str, requester: Requester) -> Sequence[AttendanceSession]:
        tc = self._get_class(teaching_class_id)
        if not self.policy_for(requester, tc).can_view_class():
            raise AuthorizationError("You are not allowed to view sessions of this class")
        return self._sessions.list_for_class(tc.teaching_class_id)

    def list_all(self, *, requester: Requester, page=1, limit=DEFAULT_PAGE_SIZE) -> SessionPage:
        """All sessions for admins, the sessions they started for teachers."""
        page = require_positive_int(page, "page")
        limit = require_positive_int(limit, "limit")
        if limit > MAX_PAGE_SIZE:
            raise ValidationError(f"limit must be at most {MAX_PAGE_SIZE}")

        if requester.is_admin:
            started_by = None
        elif requester.role == Role.TEACHER:
            started_by = requester.user_id
        else:
            raise AuthorizationError("Only teachers and admins can list attendance sessions")

        items, total = self._sessions.list_page(offset=(page - 1) * limit, limit=limit, started_by=started_by)
        return SessionPage(items=tuple(items), page=page, limit=limit, total_count=total)

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Sequence

from ..access.factory import AccessPolicyFactory
from ..classes.model import TeachingClass
from ..classes.repository import TeachingClassRepository
from ..common.datetime_utils import iso, now_local
from ..common.locks import KeyedLock
from ..core.constants import MAX_ATTENDANCE_SCORE
from ..core.enums import LogStatus, Role, SessionStatus
from ..core.exceptions import AuthorizationError, NotFoundError
from ..logs.repository import AttendanceLogRepository
from ..sessions.repository import SessionRepository
from ..users.model import Requester
from ..users.repository import UserRepository
from .calculator.base import ScoreCalculator
from .calculator.linear_calculator import LinearPenaltyCalculator
from .model import ClassAttendanceStats, StudentScore
from .repository import StudentScoreRepository

logger = logging.getLogger(__name__)


class ScoringService:
    """Scoring engine: derives StudentScore rows from completed sessions' logs."""

    def __init__(
        self,
        classes: TeachingClassRepository,
        sessions: SessionRepository,
        logs: AttendanceLogRepository,
        scores: StudentScoreRepository,
        users: UserRepository,
        *,
        calculator: Optional[ScoreCalculator] = None,
        access: Optional[AccessPolicyFactory] = None,
        class_locks: Optional[KeyedLock] = None,
    ):
        self._classes = classes
        self._sessions = sessions
        self._logs = logs
        self._scores = scores
        self._users = users
        self._calculator = calculator or LinearPenaltyCalculator()
        self._access = access or AccessPolicyFactory()
        self._locks = class_locks or KeyedLock()

    def _get_class(self, teaching_class_id: str) -> TeachingClass:
        tc = self._classes.get_by_id(str(teaching_class_id))
        if not tc:
            raise NotFoundError("Teaching class not found")
        return tc

    def recompute(self, teaching_class_id: str, *, now: Optional[datetime] = None) -> list[StudentScore]:
        """Full replace of every enrolled student's score for the class.

        Only explicit ``absent`` logs in completed sessions count; a student
        without a log for a completed session is not penalized.
        """
        now = now or now_local()

        with self._locks.hold(str(teaching_class_id)):
            tc = self._get_class(teaching_class_id)
            completed = self._sessions.list_for_class(tc.teaching_class_id, status=SessionStatus.COMPLETED)
            absent_by_student = self._logs.count_absent_by_student([s.session_id for s in completed])
            max_absent = tc.effective_max_absent

            scores: list[StudentScore] = []
            for student_id in tc.student_ids:
                absent_count = int(absent_by_student.get(student_id, 0))
                scores.append(
                    StudentScore(
                        student_id=student_id,
                        teaching_class_id=tc.teaching_class_id,
                        total_sessions=len(completed),
                        absent_sessions=absent_count,
                        attendance_score=self._calculator.attendance_score(absent_count),
                        max_absent_allowed=max_absent,
                        is_failed_due_to_absent=self._calculator.is_failed(absent_count, max_absent),
                        last_updated=now,
                    )
                )

            self._scores.replace_for_class(tc.teaching_class_id, scores)

        logger.info(
            "Recomputed %d scores for class %s over %d completed sessions",
            len(scores),
            tc.teaching_class_id,
            len(completed),
        )
        return scores

    def recompute_for(
        self,
        *,
        teaching_class_id: str,
        requester: Requester,
        now: Optional[datetime] = None,
    ) -> list[StudentScore]:
        tc = self._get_class(teaching_class_id)
        if not self._access.for_class(requester, tc).can_manage():
            raise AuthorizationError("You are not allowed to recompute scores for this class")
        return self.recompute(tc.teaching_class_id, now=now)

    def list_for_student(self, *, student_id: str, requester: Requester) -> Sequence[StudentScore]:
        student_id = str(student_id)
        scores = self._scores.list_for_student(student_id)

        if requester.is_admin:
            return scores
        if requester.role == Role.TEACHER:
            owned = set(self._classes.list_ids_for_teacher(requester.user_id))
            return [s for s in scores if s.teaching_class_id in owned]
        if requester.user_id == student_id:
            return scores
        raise AuthorizationError("You are not allowed to view this student's scores")

    def class_stats(self, *, teaching_class_id: str, requester: Requester) -> ClassAttendanceStats:
        tc = self._get_class(teaching_class_id)
        if not self._access.for_class(requester, tc).can_manage():
            raise AuthorizationError("You are not allowed to view statistics for this class")

        sessions = self._sessions.list_for_class(tc.teaching_class_id)
        scores = {s.student_id: s for s in self._scores.list_for_class(tc.teaching_class_id)}
        logs = {(l.session_id, l.student_id): l for l in self._logs.list_for_sessions([s.session_id for s in sessions])}
        users = {u.user_id: u for u in self._users.get_many(tc.student_ids)}

        student_stats = []
        for student_id in tc.student_ids:
            score = scores.get(student_id)
            user = users.get(student_id)

            per_session = []
            for s in sessions:
                log = logs.get((s.session_id, student_id))
                per_session.append(
                    {
                        "session_id": s.session_id,
                        "session_number": s.session_number,
                        "date": iso(s.session_date),
                        "status": log.status.value if log else LogStatus.ABSENT.value,
                        "note": log.note if log else None,
                    }
                )

            student_stats.append(
                {
                    "student_id": student_id,
                    "full_name": user.full_name if user else None,
                    "student_code": user.student_code if user else None,
                    "absent_sessions": score.absent_sessions if score else 0,
                    "attendance_score": score.attendance_score if score else MAX_ATTENDANCE_SCORE,
                    "is_failed_due_to_absent": score.is_failed_due_to_absent if score else False,
                    "sessions": per_session,
                }
            )

        total_students = len(tc.student_ids)
        session_stats = []
        for s in sessions:
            present_count = len(s.students_present)
            session_stats.append(
                {
                    "session_id": s.session_id,
                    "session_number": s.session_number,
                    "date": iso(s.session_date),
                    "status": s.status.value,
                    "present_count": present_count,
                    "absent_count": len(s.students_absent),
                    "attendance_rate": round(present_count * 100.0 / total_students, 2) if total_students else 0.0,
                }
            )

        return ClassAttendanceStats(
            teaching_class_id=tc.teaching_class_id,
            class_name=tc.class_name,
            total_sessions=tc.total_sessions,
            max_absent_allowed=tc.effective_max_absent,
            sessions_completed=sum(1 for s in sessions if s.status == SessionStatus.COMPLETED),
            student_stats=student_stats,
            session_stats=session_stats,
        )

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.validators import optional_text, parse_enum
from ..core.constants import DEFAULT_FACE_CONFIDENCE
from ..core.enums import CheckType, LogStatus
from ..core.exceptions import AuthorizationError, ValidationError
from ..logs.model import AttendanceLog
from ..sessions.model import CheckinMetadata
from ..sessions.service import SessionService
from ..users.model import Requester
from .collaborators import FaceMatcher, ImageSink

logger = logging.getLogger(__name__)


def _parse_descriptor(descriptor) -> list[float]:
    if not descriptor or isinstance(descriptor, (str, bytes)):
        raise ValidationError("Missing face descriptor")
    try:
        return [float(v) for v in descriptor]
    except (TypeError, ValueError):
        raise ValidationError("Face descriptor must be a list of numbers")


def _parse_confidence(value) -> float:
    try:
        confidence = float(value)
    except (TypeError, ValueError):
        raise ValidationError("confidence must be a number")
    if not 0.0 <= confidence <= 1.0:
        raise ValidationError("confidence must be between 0 and 1")
    return confidence


class CheckinService:
    """Check-in gateway: face-recognition and manual entry points.

    Both funnel into ``SessionService.reconcile``.
    """

    def __init__(
        self,
        sessions: SessionService,
        *,
        image_sink: Optional[ImageSink] = None,
        face_matcher: Optional[FaceMatcher] = None,
    ):
        self._sessions = sessions
        self._images = image_sink
        self._matcher = face_matcher

    def check_in_face(
        self,
        *,
        session_id: int,
        student_id: str,
        descriptor: Sequence[float],
        requester: Requester,
        confidence=None,
        image_base64: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> AttendanceLog:
        now = now or now_local()
        student_id = str(student_id)
        descriptor = _parse_descriptor(descriptor)

        session, tc = self._sessions.load(session_id)
        if not self._sessions.policy_for(requester, tc, session).can_check_in(student_id):
            raise AuthorizationError("You are not allowed to check in this student")
        # Fail before touching file storage.
        self._sessions.ensure_checkin_allowed(session, tc, student_id)

        if confidence is not None:
            score = _parse_confidence(confidence)
        elif self._matcher is not None:
            score = _parse_confidence(self._matcher.match(student_id=student_id, descriptor=descriptor).confidence)
        else:
            score = DEFAULT_FACE_CONFIDENCE

        captured_face_url = None
        if image_base64:
            if self._images is None:
                logger.warning("Captured image for session %s dropped: no image sink configured", session.session_id)
            else:
                stem = f"face_{student_id}_{session.session_id}_{int(now.timestamp() * 1000)}"
                captured_face_url = self._images.save(image_base64=image_base64, filename_stem=stem)

        try:
            return self._sessions.reconcile(
                session_id=session.session_id,
                student_id=student_id,
                new_status=LogStatus.PRESENT,
                check_type=CheckType.AUTO,
                metadata=CheckinMetadata(confidence=score, captured_face_url=captured_face_url),
                now=now,
            )
        except Exception:
            # The session may have closed after the first check.
            if captured_face_url:
                logger.warning("Check-in failed; discarding captured image %s", captured_face_url)
                self._images.discard(captured_face_url)
            raise

    def check_in_manual(
        self,
        *,
        session_id: int,
        student_id: str,
        status,
        requester: Requester,
        note: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> AttendanceLog:
        new_status = parse_enum(LogStatus, status, "status")

        session, tc = self._sessions.load(session_id)
        if not self._sessions.policy_for(requester, tc, session).can_manage():
            raise AuthorizationError("Only the class teacher or an admin can take manual attendance")

        return self._sessions.reconcile(
            session_id=session.session_id,
            student_id=str(student_id),
            new_status=new_status,
            check_type=CheckType.MANUAL,
            metadata=CheckinMetadata(note=optional_text(note)),
            now=now,
        )

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .access.factory import AccessPolicyFactory
from .checkin.collaborators import FaceMatcher, ImageSink
from .checkin.image_store import LocalImageStore
from .checkin.service import CheckinService
from .classes.mysql_class_repository import MySQLTeachingClassRepository
from .classes.repository import TeachingClassRepository
from .common.locks import KeyedLock
from .database.connection import DBConfig, DatabaseConnection
from .logs.mysql_log_repository import MySQLAttendanceLogRepository
from .logs.repository import AttendanceLogRepository
from .logs.service import AttendanceLogService
from .scoring.mysql_score_repository import MySQLStudentScoreRepository
from .scoring.repository import StudentScoreRepository
from .scoring.service import ScoringService
from .sessions.mysql_session_repository import MySQLSessionRepository
from .sessions.repository import SessionRepository
from .sessions.service import SessionService
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository


@dataclass(frozen=True)
class Container:
    users_repo: UserRepository

    scoring_service: ScoringService
    session_service: SessionService
    log_service: AttendanceLogService
    checkin_service: CheckinService


def assemble(
    *,
    users_repo: UserRepository,
    classes_repo: TeachingClassRepository,
    sessions_repo: SessionRepository,
    logs_repo: AttendanceLogRepository,
    scores_repo: StudentScoreRepository,
    image_sink: Optional[ImageSink] = None,
    face_matcher: Optional[FaceMatcher] = None,
) -> Container:
    """Wire services on top of any repository implementations."""

    access = AccessPolicyFactory()
    scoring_service = ScoringService(
        classes_repo,
        sessions_repo,
        logs_repo,
        scores_repo,
        users_repo,
        access=access,
        class_locks=KeyedLock(),
    )
    session_service = SessionService(
        sessions_repo,
        classes_repo,
        scoring_service,
        access=access,
        session_locks=KeyedLock(),
    )
    log_service = AttendanceLogService(logs_repo, sessions_repo, classes_repo, access=access)
    checkin_service = CheckinService(session_service, image_sink=image_sink, face_matcher=face_matcher)

    return Container(
        users_repo=users_repo,
        scoring_service=scoring_service,
        session_service=session_service,
        log_service=log_service,
        checkin_service=checkin_service,
    )


def build_container(
    *,
    db_config: dict,
    upload_dir: str | Path = "uploads/faces",
    upload_url_prefix: str = "/uploads/faces",
    face_matcher: Optional[FaceMatcher] = None,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_settings(db_config))

    return assemble(
        users_repo=MySQLUserRepository(conn),
        classes_repo=MySQLTeachingClassRepository(conn),
        sessions_repo=MySQLSessionRepository(conn),
        logs_repo=MySQLAttendanceLogRepository(conn),
        scores_repo=MySQLStudentScoreRepository(conn),
        image_sink=LocalImageStore(upload_dir, url_prefix=upload_url_prefix),
        face_matcher=face_matcher,
    )

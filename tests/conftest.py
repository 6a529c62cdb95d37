from __future__ import annotations

import threading
from dataclasses import replace
from datetime import date, datetime
from types import SimpleNamespace
from typing import Optional

import pytest

from src.class_attendance.class_attendance.checkin.collaborators import FaceMatch
from src.class_attendance.class_attendance.classes.model import TeachingClass
from src.class_attendance.class_attendance.container import assemble
from src.class_attendance.class_attendance.core.enums import CheckType, LogStatus, Role, SessionStatus
from src.class_attendance.class_attendance.core.exceptions import ConflictError
from src.class_attendance.class_attendance.logs.model import AttendanceLog
from src.class_attendance.class_attendance.scoring.model import StudentScore
from src.class_attendance.class_attendance.sessions.model import AttendanceSession, PresentEntry
from src.class_attendance.class_attendance.users.model import Requester, User

NOW = datetime(2026, 3, 2, 8, 0, 0)


class InMemoryUsers:
    def __init__(self, users: list[User]):
        self._users = {u.user_id: u for u in users}

    def get_by_id(self, user_id: str) -> Optional[User]:
        return self._users.get(str(user_id))

    def get_many(self, user_ids):
        return [self._users[u] for u in user_ids if u in self._users]


class InMemoryClasses:
    def __init__(self, classes: list[TeachingClass]):
        self._classes = {c.teaching_class_id: c for c in classes}

    def get_by_id(self, teaching_class_id: str) -> Optional[TeachingClass]:
        return self._classes.get(str(teaching_class_id))

    def list_ids_for_teacher(self, teacher_id: str):
        return [c.teaching_class_id for c in self._classes.values() if c.teacher_id == teacher_id]

    def put(self, teaching_class: TeachingClass) -> None:
        self._classes[teaching_class.teaching_class_id] = teaching_class


class InMemorySessions:
    def __init__(self, logs: "InMemoryLogs"):
        self._logs = logs
        self._rows: dict[int, dict] = {}
        self._next_id = 1
        self._lock = threading.Lock()

    def _to_session(self, row: dict) -> AttendanceSession:
        return AttendanceSession(
            session_id=row["session_id"],
            teaching_class_id=row["teaching_class_id"],
            session_number=row["session_number"],
            session_date=row["session_date"],
            room_id=row["room_id"],
            status=row["status"],
            start_time=row["start_time"],
            end_time=row["end_time"],
            notes=row["notes"],
            started_by=row["started_by"],
            students_present=tuple(row["present"].values()),
            students_absent=tuple(row["absent"]),
        )

    def insert(
        self,
        *,
        teaching_class_id: str,
        session_number: int,
        status: SessionStatus,
        absent_student_ids=(),
        started_by: Optional[str] = None,
        start_time: Optional[datetime] = None,
        end_time: Optional[datetime] = None,
        session_date: date = NOW.date(),
        room_id: Optional[str] = None,
    ) -> int:
        with self._lock:
            for row in self._rows.values():
                if row["teaching_class_id"] == teaching_class_id and row["session_number"] == session_number:
                    raise ConflictError("Attendance session already exists")
            session_id = self._next_id
            self._next_id += 1
            self._rows[session_id] = {
                "session_id": session_id,
                "teaching_class_id": teaching_class_id,
                "session_number": session_number,
                "session_date": session_date,
                "room_id": room_id,
                "status": status,
                "start_time": start_time,
                "end_time": end_time,
                "notes": None,
                "started_by": started_by,
                "present": {},
                "absent": dict.fromkeys(absent_student_ids),
            }
            return session_id

    def get_by_id(self, session_id: int) -> Optional[AttendanceSession]:
        row = self._rows.get(int(session_id))
        return self._to_session(row) if row else None

    def get_by_slot(self, teaching_class_id: str, session_number: int) -> Optional[AttendanceSession]:
        for row in self._rows.values():
            if row["teaching_class_id"] == teaching_class_id and row["session_number"] == session_number:
                return self._to_session(row)
        return None

    def create(self, *, teaching_class_id, session_number, session_date, room_id, status, start_time, started_by, absent_student_ids) -> int:
        return self.insert(
            teaching_class_id=teaching_class_id,
            session_number=session_number,
            session_date=session_date,
            room_id=room_id,
            status=status,
            start_time=start_time,
            started_by=started_by,
            absent_student_ids=absent_student_ids,
        )

    def update_status(self, *, session_id, status, start_time) -> bool:
        row = self._rows.get(int(session_id))
        if not row:
            return False
        row["status"] = status
        row["start_time"] = start_time
        return True

    def update_notes(self, *, session_id, notes) -> bool:
        row = self._rows.get(int(session_id))
        if not row:
            return False
        row["notes"] = notes
        return True

    @staticmethod
    def _move(present: dict, absent: dict, student_id, status, timestamp, check_type) -> None:
        if status == LogStatus.PRESENT:
            absent.pop(student_id, None)
            if student_id not in present:
                present[student_id] = PresentEntry(student_id=student_id, timestamp=timestamp, check_type=check_type)
        else:
            present.pop(student_id, None)
            absent.setdefault(student_id, None)

    def record_checkin(
        self,
        *,
        session_id,
        student_id,
        status,
        check_type,
        timestamp,
        recognized_confidence=None,
        captured_face_url=None,
        note=None,
    ):
        # Stage both changes, then apply them together.
        with self._lock:
            row = self._rows[int(session_id)]
            present, absent = dict(row["present"]), dict(row["absent"])
            self._move(present, absent, student_id, status, timestamp, check_type)
            log = self._logs.put(
                session_id=session_id,
                student_id=student_id,
                status=status,
                recognized=check_type == CheckType.AUTO,
                timestamp=timestamp,
                recognized_confidence=recognized_confidence,
                captured_face_url=captured_face_url,
                note=note,
            )
            row["present"], row["absent"] = present, absent
            return log

    def list_page(self, *, offset, limit, started_by=None):
        rows = [r for r in self._rows.values() if started_by is None or r["started_by"] == started_by]
        rows.sort(key=lambda r: (r["session_date"], r["session_id"]), reverse=True)
        return [self._to_session(r) for r in rows[offset : offset + limit]], len(rows)

    def list_for_class(self, teaching_class_id, *, status=None):
        rows = [
            r
            for r in self._rows.values()
            if r["teaching_class_id"] == teaching_class_id and (status is None or r["status"] == status)
        ]
        rows.sort(key=lambda r: r["session_number"])
        return [self._to_session(r) for r in rows]


class InMemoryLogs:
    def __init__(self):
        self._by_pair: dict[tuple[int, str], AttendanceLog] = {}
        self._next_id = 1

    def get_for_session_and_student(self, session_id, student_id):
        return self._by_pair.get((int(session_id), str(student_id)))

    def put(self, *, session_id, student_id, status, recognized, timestamp, recognized_confidence=None, captured_face_url=None, note=None):
        key = (int(session_id), str(student_id))
        existing = self._by_pair.get(key)
        if existing:
            log_id = existing.log_id
        else:
            log_id = self._next_id
            self._next_id += 1
        log = AttendanceLog(
            log_id=log_id,
            session_id=int(session_id),
            student_id=str(student_id),
            status=status,
            recognized=recognized,
            timestamp=timestamp,
            recognized_confidence=recognized_confidence,
            captured_face_url=captured_face_url,
            note=note,
        )
        self._by_pair[key] = log
        return log

    def list_for_session(self, session_id, *, student_id=None):
        items = [
            l for l in self._by_pair.values() if l.session_id == int(session_id) and (student_id is None or l.student_id == student_id)
        ]
        return sorted(items, key=lambda l: l.timestamp, reverse=True)

    def list_for_student(self, student_id):
        items = [l for l in self._by_pair.values() if l.student_id == student_id]
        return sorted(items, key=lambda l: l.timestamp, reverse=True)

    def list_for_sessions(self, session_ids):
        ids = set(session_ids)
        return [l for l in self._by_pair.values() if l.session_id in ids]

    def count_absent_by_student(self, session_ids):
        ids = set(session_ids)
        counts: dict[str, int] = {}
        for l in self._by_pair.values():
            if l.session_id in ids and l.status == LogStatus.ABSENT:
                counts[l.student_id] = counts.get(l.student_id, 0) + 1
        return counts

    def all(self):
        return list(self._by_pair.values())


class InMemoryScores:
    def __init__(self):
        self._by_pair: dict[tuple[str, str], StudentScore] = {}
        self.writes = 0

    def replace_for_class(self, teaching_class_id, scores):
        self.writes += 1
        for s in scores:
            self._by_pair[(s.student_id, s.teaching_class_id)] = s

    def list_for_class(self, teaching_class_id):
        return sorted((s for s in self._by_pair.values() if s.teaching_class_id == teaching_class_id), key=lambda s: s.student_id)

    def list_for_student(self, student_id):
        return sorted((s for s in self._by_pair.values() if s.student_id == student_id), key=lambda s: s.last_updated, reverse=True)

    def get(self, student_id, teaching_class_id) -> Optional[StudentScore]:
        return self._by_pair.get((student_id, teaching_class_id))


class FakeImageSink:
    def __init__(self):
        self.saved: list[tuple[str, str]] = []
        self.discarded: list[str] = []

    def save(self, *, image_base64: str, filename_stem: str) -> str:
        self.saved.append((image_base64, filename_stem))
        return f"/uploads/faces/{filename_stem}.jpg"

    def discard(self, reference: str) -> None:
        self.discarded.append(reference)


class FakeFaceMatcher:
    def __init__(self, confidence: float):
        self.confidence = confidence
        self.calls: list[str] = []

    def match(self, *, student_id, descriptor):
        self.calls.append(student_id)
        return FaceMatch(confidence=self.confidence, descriptor=descriptor)


STUDENTS = ("S1", "S2", "S3", "S4", "S5")


def _users() -> list[User]:
    users = [
        User(user_id="T1", full_name="Teacher One", role=Role.TEACHER),
        User(user_id="T2", full_name="Teacher Two", role=Role.TEACHER),
        User(user_id="A1", full_name="Admin", role=Role.ADMIN),
    ]
    users += [User(user_id=s, full_name=f"Student {s}", role=Role.STUDENT, student_code=f"SV{s}") for s in STUDENTS]
    users.append(User(user_id="S9", full_name="Outsider", role=Role.STUDENT))
    return users


def build_world(*, image_sink=None, face_matcher=None, scores_repo=None) -> SimpleNamespace:
    classroom = TeachingClass(
        teaching_class_id="C1",
        class_name="Databases",
        teacher_id="T1",
        total_sessions=15,
        student_ids=STUDENTS,
        max_absent_allowed=3,
    )
    other_class = TeachingClass(
        teaching_class_id="C2",
        class_name="Networks",
        teacher_id="T2",
        total_sessions=10,
        student_ids=("S1", "S9"),
        max_absent_allowed=None,
    )

    users = InMemoryUsers(_users())
    classes = InMemoryClasses([classroom, other_class])
    logs = InMemoryLogs()
    sessions = InMemorySessions(logs)
    scores = scores_repo or InMemoryScores()

    container = assemble(
        users_repo=users,
        classes_repo=classes,
        sessions_repo=sessions,
        logs_repo=logs,
        scores_repo=scores,
        image_sink=image_sink,
        face_matcher=face_matcher,
    )

    return SimpleNamespace(
        classroom=classroom,
        other_class=other_class,
        users=users,
        classes=classes,
        sessions=sessions,
        logs=logs,
        scores=scores,
        container=container,
        session_service=container.session_service,
        scoring_service=container.scoring_service,
        log_service=container.log_service,
        checkin_service=container.checkin_service,
        teacher=Requester(user_id="T1", role=Role.TEACHER),
        other_teacher=Requester(user_id="T2", role=Role.TEACHER),
        admin=Requester(user_id="A1", role=Role.ADMIN),
        student=Requester(user_id="S1", role=Role.STUDENT),
        outsider=Requester(user_id="S9", role=Role.STUDENT),
    )


@pytest.fixture()
def world() -> SimpleNamespace:
    return build_world()


@pytest.fixture()
def world_factory():
    return build_world


@pytest.fixture()
def active_session(world) -> AttendanceSession:
    return world.session_service.create(
        teaching_class_id="C1",
        session_number=1,
        requester=world.teacher,
        now=NOW,
    )


def assert_partition(world, session_id: int) -> None:
    session = world.sessions.get_by_id(session_id)
    tc = world.classes.get_by_id(session.teaching_class_id)
    present = [p.student_id for p in session.students_present]
    absent = list(session.students_absent)
    assert len(present) == len(set(present))
    assert len(absent) == len(set(absent))
    assert not set(present) & set(absent)
    assert set(present) | set(absent) == set(tc.student_ids)


@pytest.fixture()
def partition():
    return assert_partition


@pytest.fixture()
def now() -> datetime:
    return NOW


def complete_session_with(world, number: int, absent=(), present=(), now: datetime = NOW) -> int:
    """Create session #number, log the given students, then complete it."""

    session = world.session_service.create(
        teaching_class_id="C1",
        session_number=number,
        requester=world.teacher,
        now=now,
    )
    for sid in absent:
        world.checkin_service.check_in_manual(
            session_id=session.session_id, student_id=sid, status="absent", requester=world.teacher, now=now
        )
    for sid in present:
        world.checkin_service.check_in_manual(
            session_id=session.session_id, student_id=sid, status="present", requester=world.teacher, now=now
        )
    world.session_service.transition_status(
        session_id=session.session_id, new_status="completed", requester=world.teacher, now=now
    )
    return session.session_id


@pytest.fixture()
def complete_session():
    return complete_session_with


def with_class(world, **changes) -> TeachingClass:
    updated = replace(world.classroom, **changes)
    world.classes.put(updated)
    return updated


@pytest.fixture()
def update_class():
    return with_class


@pytest.fixture()
def image_sink() -> FakeImageSink:
    return FakeImageSink()


@pytest.fixture()
def face_matcher_factory():
    return FakeFaceMatcher

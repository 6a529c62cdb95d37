from datetime import date

from src.class_attendance.class_attendance.access.factory import AccessPolicyFactory
from src.class_attendance.class_attendance.access.policy import (
    AdminAccess,
    EnrolledStudentAccess,
    OtherAccess,
    OwningTeacherAccess,
)
from src.class_attendance.class_attendance.classes.model import TeachingClass
from src.class_attendance.class_attendance.core.enums import Role, SessionStatus
from src.class_attendance.class_attendance.sessions.model import AttendanceSession
from src.class_attendance.class_attendance.users.model import Requester

CLASSROOM = TeachingClass(
    teaching_class_id="C1",
    class_name="Databases",
    teacher_id="T1",
    total_sessions=10,
    student_ids=("S1", "S2"),
)


def _session(started_by=None):
    return AttendanceSession(
        session_id=1,
        teaching_class_id="C1",
        session_number=1,
        session_date=date(2026, 3, 2),
        status=SessionStatus.ACTIVE,
        started_by=started_by,
    )


def test_admin_gets_admin_access_everywhere():
    policy = AccessPolicyFactory().for_class(Requester("A1", Role.ADMIN), CLASSROOM)
    assert isinstance(policy, AdminAccess)
    assert policy.can_manage() and policy.can_view_all_logs()


def test_class_teacher_owns_the_class():
    policy = AccessPolicyFactory().for_class(Requester("T1", Role.TEACHER), CLASSROOM)
    assert isinstance(policy, OwningTeacherAccess)
    assert policy.can_check_in("S2")


def test_session_creator_owns_only_that_session():
    factory = AccessPolicyFactory()
    requester = Requester("T2", Role.TEACHER)

    assert isinstance(factory.for_class(requester, CLASSROOM, _session(started_by="T2")), OwningTeacherAccess)
    assert isinstance(factory.for_class(requester, CLASSROOM, _session(started_by="T1")), OtherAccess)
    assert isinstance(factory.for_class(requester, CLASSROOM), OtherAccess)


def test_enrolled_student_may_only_check_in_themselves():
    policy = AccessPolicyFactory().for_class(Requester("S1", Role.STUDENT), CLASSROOM)

    assert isinstance(policy, EnrolledStudentAccess)
    assert not policy.can_manage()
    assert policy.can_view_class()
    assert not policy.can_view_all_logs()
    assert policy.can_check_in("S1")
    assert not policy.can_check_in("S2")


def test_unenrolled_student_gets_nothing():
    policy = AccessPolicyFactory().for_class(Requester("S9", Role.STUDENT), CLASSROOM)
    assert isinstance(policy, OtherAccess)
    assert not (policy.can_manage() or policy.can_view_class() or policy.can_check_in("S9"))

from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import parse_iso_date
from ..common.http import api_view, current_requester, json_body, ok, query_arg
from ..core.constants import DEFAULT_PAGE_SIZE
from ..core.exceptions import ValidationError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    def _requester():
        return current_requester(container.users_repo)

    def _parse_date(value):
        if not value:
            return None
        try:
            return parse_iso_date(value)
        except ValueError:
            raise ValidationError("date must be YYYY-MM-DD")

    @app.route("/api/attendance/sessions", methods=["POST"], endpoint="api_create_session")
    @api_view
    def create_session():
        requester = _requester()
        data = json_body()
        if not data.get("teaching_class_id"):
            raise ValidationError("teaching_class_id is required")

        session = container.session_service.create(
            teaching_class_id=str(data["teaching_class_id"]),
            session_number=data.get("session_number"),
            session_date=_parse_date(data.get("date")),
            room_id=data.get("room"),
            requester=requester,
        )
        return ok(session.to_dict(), 201)

    @app.route("/api/attendance/sessions", methods=["GET"], endpoint="api_list_sessions")
    @api_view
    def list_sessions():
        result = container.session_service.list_all(
            requester=_requester(),
            page=request.args.get("page", 1),
            limit=request.args.get("limit", DEFAULT_PAGE_SIZE),
        )
        return ok(
            [s.to_dict() for s in result.items],
            currentPage=result.page,
            totalPages=result.total_pages,
            totalCount=result.total_count,
        )

    @app.route("/api/attendance/sessions/<int:session_id>", methods=["GET"], endpoint="api_get_session")
    @api_view
    def get_session(session_id: int):
        session = container.session_service.get(session_id=session_id, requester=_requester())
        return ok(session.to_dict())

    @app.route("/api/attendance/sessions/<int:session_id>/status", methods=["PATCH"], endpoint="api_session_status")
    @api_view
    def update_status(session_id: int):
        requester = _requester()
        data = json_body()
        session = container.session_service.transition_status(
            session_id=session_id,
            new_status=data.get("status"),
            requester=requester,
        )
        return ok(session.to_dict(), message=f"Session status updated to {session.status.value}")

    @app.route("/api/attendance/sessions/<int:session_id>/notes", methods=["PATCH"], endpoint="api_session_notes")
    @api_view
    def update_notes(session_id: int):
        requester = _requester()
        data = json_body()
        session = container.session_service.update_notes(
            session_id=session_id,
            notes=data.get("notes"),
            requester=requester,
        )
        return ok(session.to_dict())

    @app.route("/api/attendance/classes/<teaching_class_id>/sessions", methods=["GET"], endpoint="api_class_sessions")
    @api_view
    def class_sessions(teaching_class_id: str):
        sessions = container.session_service.list_for_class(
            teaching_class_id=teaching_class_id,
            requester=_requester(),
        )
        return ok([s.to_dict() for s in sessions], count=len(sessions))

    @app.route("/api/attendance/sessions/<int:session_id>/logs", methods=["GET"], endpoint="api_session_logs")
    @api_view
    def session_logs(session_id: int):
        logs = container.log_service.list_for_session(
            session_id=session_id,
            requester=_requester(),
            student_id=query_arg("student_id"),
        )
        return ok([log.to_dict() for log in logs], count=len(logs))

    @app.route("/api/attendance/students/<student_id>/logs", methods=["GET"], endpoint="api_student_logs")
    @api_view
    def student_logs(student_id: str):
        logs = container.log_service.list_for_student(student_id=student_id, requester=_requester())
        return ok([log.to_dict() for log in logs], count=len(logs))

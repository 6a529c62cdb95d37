from __future__ import annotations

from flask import Flask

from ..common.http import api_view, current_requester, json_body, ok
from ..core.exceptions import ValidationError
from ..container import Container


def _require(data: dict, *names: str) -> None:
    missing = [n for n in names if data.get(n) in (None, "", [])]
    if missing:
        raise ValidationError(f"Missing attendance data: {', '.join(missing)}")


def _session_id(value) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError("session_id must be an integer")


def register(app: Flask, container: Container) -> None:
    @app.route("/api/checkin/face", methods=["POST"], endpoint="api_checkin_face")
    @api_view
    def checkin_face():
        requester = current_requester(container.users_repo)
        data = json_body()
        _require(data, "session_id", "student_id", "descriptor")

        log = container.checkin_service.check_in_face(
            session_id=_session_id(data["session_id"]),
            student_id=str(data["student_id"]),
            descriptor=data["descriptor"],
            confidence=data.get("confidence"),
            image_base64=data.get("image"),
            requester=requester,
        )
        return ok(log.to_dict(), message="Checked in")

    @app.route("/api/checkin/manual", methods=["POST"], endpoint="api_checkin_manual")
    @api_view
    def checkin_manual():
        requester = current_requester(container.users_repo)
        data = json_body()
        _require(data, "session_id", "student_id", "status")

        log = container.checkin_service.check_in_manual(
            session_id=_session_id(data["session_id"]),
            student_id=str(data["student_id"]),
            status=data["status"],
            note=data.get("note"),
            requester=requester,
        )
        return ok(log.to_dict(), message="Attendance recorded")

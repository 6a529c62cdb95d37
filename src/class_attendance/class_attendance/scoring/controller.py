from __future__ import annotations

from flask import Flask

from ..common.http import api_view, current_requester, json_body, ok
from ..core.exceptions import ValidationError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/scores/recompute", methods=["POST"], endpoint="api_recompute_scores")
    @api_view
    def recompute_scores():
        requester = current_requester(container.users_repo)
        data = json_body()
        teaching_class_id = data.get("teaching_class_id")
        if not teaching_class_id:
            raise ValidationError("teaching_class_id is required")

        scores = container.scoring_service.recompute_for(
            teaching_class_id=str(teaching_class_id),
            requester=requester,
        )
        return ok([s.to_dict() for s in scores], count=len(scores))

    @app.route("/api/scores/students/<student_id>", methods=["GET"], endpoint="api_student_scores")
    @api_view
    def student_scores(student_id: str):
        scores = container.scoring_service.list_for_student(
            student_id=student_id,
            requester=current_requester(container.users_repo),
        )
        return ok([s.to_dict() for s in scores], count=len(scores))

    @app.route("/api/scores/classes/<teaching_class_id>/stats", methods=["GET"], endpoint="api_class_stats")
    @api_view
    def class_stats(teaching_class_id: str):
        stats = container.scoring_service.class_stats(
            teaching_class_id=teaching_class_id,
            requester=current_requester(container.users_repo),
        )
        return ok(stats.to_dict())

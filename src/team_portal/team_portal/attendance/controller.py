from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_optional_date
from ..common.web import json_body, json_endpoint, query_int
from ..core.exceptions import ValidationError


def register(app: Flask, container) -> None:
    endpoint = json_endpoint(container)

    @app.route("/api/attendance/mark", methods=["POST"], endpoint="mark_attendance")
    @endpoint
    def mark_attendance(actor):
        data = json_body()
        record = container.attendance_service.mark(
            actor,
            work_mode=data.get("work_mode") or "",
            status=data.get("status"),
            user_id=data.get("user_id"),
        )
        return jsonify({"message": "Attendance marked", "attendance": record.to_dict()}), 201

    @app.route("/api/attendance/<int:attendance_id>/decision", methods=["POST"], endpoint="decide_attendance")
    @endpoint
    def decide_attendance(actor, attendance_id: int):
        action = (json_body().get("action") or "").strip().lower()
        if action not in ("approve", "reject"):
            raise ValidationError("action must be 'approve' or 'reject'")
        record = container.attendance_service.decide(actor, attendance_id, approve=action == "approve")
        return jsonify({"message": f"Attendance {record.approval_status.value}", "attendance": record.to_dict()})

    @app.route("/api/attendance/history", methods=["GET"], endpoint="attendance_history")
    @endpoint
    def attendance_history(actor):
        records = container.attendance_service.history(actor, user_id=query_int("user_id"))
        return jsonify({"attendance": [r.to_dict() for r in records]})

    @app.route("/api/attendance/report", methods=["GET"], endpoint="attendance_report")
    @endpoint
    def attendance_report(actor):
        rows = container.attendance_service.report(
            actor,
            days=query_int("days"),
            start=parse_optional_date(request.args.get("start_date")),
            end=parse_optional_date(request.args.get("end_date")),
            user_id=query_int("user_id"),
            approval_status=request.args.get("status") or None,
            fill_missing=request.args.get("fill_missing") in ("1", "true"),
        )
        return jsonify({"data": [r.to_dict() for r in rows]})

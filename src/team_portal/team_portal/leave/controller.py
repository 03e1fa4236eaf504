from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.web import json_body, json_endpoint
from ..core.exceptions import ValidationError


def register(app: Flask, container) -> None:
    endpoint = json_endpoint(container)

    @app.route("/api/leave", methods=["GET"], endpoint="list_leaves")
    @endpoint
    def list_leaves(actor):
        report = request.args.get("report") == "true"
        leaves = container.leave_service.list_leaves(actor, report=report)
        return jsonify({"success": True, "data": [lv.to_dict() for lv in leaves]})

    @app.route("/api/leave", methods=["POST"], endpoint="apply_leave")
    @endpoint
    def apply_leave(actor):
        data = json_body()
        leave = container.leave_service.apply(
            actor,
            leave_type=data.get("leave_type") or "",
            start_date=data.get("start_date") or "",
            end_date=data.get("end_date") or "",
            reason=data.get("reason") or "",
        )
        return jsonify({"success": True, "data": leave.to_dict()}), 201

    @app.route("/api/leave/<int:leave_id>/decision", methods=["POST"], endpoint="decide_leave")
    @endpoint
    def decide_leave(actor, leave_id: int):
        action = (json_body().get("action") or "").strip().lower()
        if action not in ("approve", "reject"):
            raise ValidationError("action must be 'approve' or 'reject'")
        leave = container.leave_service.decide(actor, leave_id, approve=action == "approve")
        return jsonify({"success": True, "data": leave.to_dict()})

    @app.route("/api/leave/pending", methods=["GET"], endpoint="pending_leaves")
    @endpoint
    def pending_leaves(actor):
        return jsonify({"leaves": [lv.to_dict() for lv in container.leave_service.list_pending(actor)]})

    @app.route("/api/leave-rule", methods=["GET"], endpoint="get_leave_rule")
    @endpoint
    def get_leave_rule(actor):
        return jsonify(container.leave_service.get_rule(actor).to_dict())

    @app.route("/api/leave-rule", methods=["PUT"], endpoint="update_leave_rule")
    @endpoint
    def update_leave_rule(actor):
        data = json_body()
        rule = container.leave_service.update_rule(
            actor,
            max_paid_leaves_per_month=data.get("max_paid_leaves_per_month"),
            notes=data.get("notes"),
        )
        return jsonify(rule.to_dict())

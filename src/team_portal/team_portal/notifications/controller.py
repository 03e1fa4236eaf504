from __future__ import annotations

from flask import Flask, jsonify

from ..common.web import json_body, json_endpoint


def register(app: Flask, container) -> None:
    endpoint = json_endpoint(container)

    @app.route("/api/notifications", methods=["GET"], endpoint="list_notifications")
    @endpoint
    def list_notifications(actor):
        notifications = container.notification_service.list_for(actor)
        out = []
        for n in notifications:
            item = n.to_dict()
            state = n.state_for(actor.email)
            item["state"] = state.value if state else None
            out.append(item)
        return jsonify({"notifications": out, "unread": container.notification_service.unread_count(actor)})

    @app.route("/api/notifications", methods=["POST"], endpoint="send_notification")
    @endpoint
    def send_notification(actor):
        data = json_body()
        msg = data.get("msg") or {}
        recipients = data.get("to_email") or []
        notification = container.notification_service.send(
            actor,
            audience=data.get("data_to") or "",
            msg_content=msg.get("msg_content", "") if isinstance(msg, dict) else "",
            source=msg.get("source", "") if isinstance(msg, dict) else "",
            recipient_emails=[r.get("email", "") if isinstance(r, dict) else r for r in recipients],
        )
        return jsonify({"message": "Notification created successfully", "notification": notification.to_dict()}), 201

    @app.route("/api/notifications/<int:notification_id>/read", methods=["POST"], endpoint="mark_notification_read")
    @endpoint
    def mark_notification_read(actor, notification_id: int):
        notification = container.notification_service.mark_read(actor, notification_id)
        return jsonify({"notification": notification.to_dict()})

    @app.route("/api/notifications/<int:notification_id>", methods=["DELETE"], endpoint="delete_notification")
    @endpoint
    def delete_notification(actor, notification_id: int):
        container.notification_service.delete(actor, notification_id)
        return jsonify({"message": "Notification deleted successfully"})

from __future__ import annotations

from flask import Flask, jsonify

from ..common.web import json_body, json_endpoint, query_int


def register(app: Flask, container) -> None:
    endpoint = json_endpoint(container)

    @app.route("/api/tasks", methods=["GET"], endpoint="list_tasks")
    @endpoint
    def list_tasks(actor):
        tasks = container.task_service.list_tasks(actor, project_id=query_int("project_id"))
        return jsonify({"tasks": [t.to_dict() for t in tasks]})

    @app.route("/api/tasks", methods=["POST"], endpoint="create_task")
    @endpoint
    def create_task(actor):
        data = json_body()
        task = container.task_service.create_task(
            actor,
            project_id=data.get("project_id") or 0,
            title=data.get("title", ""),
            description=data.get("description", ""),
            priority=data.get("priority") or "medium",
            due_date=data.get("due_date"),
            assignee_ids=data.get("assignee_ids") or [],
            checklist=data.get("checklist") or [],
        )
        return jsonify({"task": task.to_dict()}), 201

    @app.route("/api/tasks/<int:task_id>", methods=["GET"], endpoint="get_task")
    @endpoint
    def get_task(actor, task_id: int):
        return jsonify({"task": container.task_service.get_task(actor, task_id).to_dict()})

    @app.route("/api/tasks/<int:task_id>", methods=["DELETE"], endpoint="delete_task")
    @endpoint
    def delete_task(actor, task_id: int):
        container.task_service.delete_task(actor, task_id)
        return jsonify({"message": "Task deleted"})

    @app.route("/api/tasks/<int:task_id>/status", methods=["PATCH"], endpoint="update_task_status")
    @endpoint
    def update_task_status(actor, task_id: int):
        data = json_body()
        if "status" not in data:
            return jsonify({"error": "Missing 'status' in body"}), 400
        task = container.task_service.update_status(actor, task_id, data["status"])
        return jsonify({"task": task.to_dict()})

    @app.route("/api/tasks/<int:task_id>/checklist/<int:item_id>", methods=["PATCH"], endpoint="toggle_checklist_item")
    @endpoint
    def toggle_checklist_item(actor, task_id: int, item_id: int):
        data = json_body()
        task = container.task_service.toggle_checklist_item(actor, task_id, item_id, data.get("is_completed"))
        return jsonify({"message": "Checklist updated", "progress": task.progress})

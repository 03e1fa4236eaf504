from __future__ import annotations

from flask import Flask, jsonify

from ..common.web import json_body, json_endpoint


def register(app: Flask, container) -> None:
    endpoint = json_endpoint(container)

    @app.route("/api/projects", methods=["GET"], endpoint="list_projects")
    @endpoint
    def list_projects(actor):
        projects = container.project_service.list_projects(actor)
        return jsonify({"projects": [p.to_dict() for p in projects]})

    @app.route("/api/projects", methods=["POST"], endpoint="create_project")
    @endpoint
    def create_project(actor):
        data = json_body()
        project = container.project_service.create_project(
            actor,
            project_name=data.get("project_name", ""),
            description=data.get("description", ""),
            state=data.get("state") or "ongoing",
            participants=data.get("participants") or [],
        )
        return jsonify({"project": project.to_dict()}), 201

    @app.route("/api/projects/<int:project_id>", methods=["GET"], endpoint="get_project")
    @endpoint
    def get_project(actor, project_id: int):
        return jsonify({"project": container.project_service.get_project(actor, project_id).to_dict()})

    @app.route("/api/projects/<int:project_id>/state", methods=["PATCH"], endpoint="update_project_state")
    @endpoint
    def update_project_state(actor, project_id: int):
        data = json_body()
        project = container.project_service.update_project_state(actor, project_id, data.get("state", ""))
        return jsonify({"project": project.to_dict()})

    @app.route("/api/projects/<int:project_id>/announcements", methods=["GET"], endpoint="list_announcements")
    @endpoint
    def list_announcements(actor, project_id: int):
        announcements = container.project_service.list_announcements(actor, project_id)
        return jsonify({"announcements": [a.to_dict() for a in announcements]})

    @app.route("/api/projects/<int:project_id>/announcements", methods=["POST"], endpoint="post_announcement")
    @endpoint
    def post_announcement(actor, project_id: int):
        data = json_body()
        announcement = container.project_service.post_announcement(
            actor,
            project_id,
            msg=data.get("msg", ""),
            file=data.get("file"),
            original_name=data.get("originalName"),
            posted_at=data.get("date"),
        )
        return jsonify({"message": "Announcement posted successfully", "announcement": announcement.to_dict()}), 201

    @app.route(
        "/api/projects/<int:project_id>/announcements/<int:announcement_id>",
        methods=["DELETE"],
        endpoint="delete_announcement",
    )
    @endpoint
    def delete_announcement(actor, project_id: int, announcement_id: int):
        container.project_service.delete_announcement(actor, project_id, announcement_id)
        return jsonify({"message": "Announcement deleted successfully"})

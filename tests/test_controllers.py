from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from types import SimpleNamespace

import pytest
from flask import Flask
from werkzeug.security import generate_password_hash

from team_portal.common.web import SESSION_USER_KEY
from team_portal.core.exceptions import ConflictError, NotFoundError
from team_portal.leave import controller as leave_controller
from team_portal.projects import controller as project_controller
from team_portal.projects.model import Announcement
from team_portal.tasks import controller as task_controller
from team_portal.users import controller as user_controller
from team_portal.users.service import AuthService, UserService


class StubTaskService:
    def __init__(self):
        self.calls = []

    def update_status(self, actor, task_id, status):
        self.calls.append((actor.user_id, task_id, status))
        raise ConflictError("Task was changed by someone else, reload and try again")

    def list_tasks(self, actor, *, project_id=None):
        raise RuntimeError("database gone")


class StubProjectService:
    def __init__(self):
        self.posted = []

    def post_announcement(self, actor, project_id, *, msg, file, original_name, posted_at):
        self.posted.append((actor.user_id, project_id, msg, original_name, posted_at))
        return Announcement(
            announcement_id=7,
            project_id=project_id,
            msg=msg,
            posted_by=actor.user_id,
            posted_by_email=actor.email,
            posted_at=datetime(2026, 4, 1, 9, 30),
            original_name=original_name,
        )

    def delete_announcement(self, actor, project_id, announcement_id):
        raise NotFoundError("Announcement not found")


@pytest.fixture()
def app(users_repo):
    users_repo.users[3] = replace(users_repo.users[3], password_hash=generate_password_hash("secret123"))
    container = SimpleNamespace(
        auth_service=AuthService(users_repo),
        user_service=UserService(users_repo),
        task_service=StubTaskService(),
        leave_service=SimpleNamespace(),
        project_service=StubProjectService(),
    )
    app = Flask(__name__)
    app.config.update(SECRET_KEY="test", TESTING=True)
    user_controller.register(app, container)
    task_controller.register(app, container)
    leave_controller.register(app, container)
    project_controller.register(app, container)
    app.container = container
    return app


@pytest.fixture()
def client(app):
    return app.test_client()


def _login_as(client, user_id):
    with client.session_transaction() as s:
        s[SESSION_USER_KEY] = user_id


def test_requests_without_session_are_401(client):
    resp = client.get("/api/users")
    assert resp.status_code == 401
    assert resp.get_json()["error"] == "Please log in to continue"


def test_login_sets_session(client):
    resp = client.post("/api/auth/login", json={"email": "member@example.com", "password": "secret123"})
    assert resp.status_code == 200
    assert resp.get_json()["user"]["email"] == "member@example.com"
    assert "password_hash" not in resp.get_json()["user"]

    resp = client.get("/api/auth/session")
    assert resp.get_json()["user"]["user_id"] == 3

    client.post("/api/auth/logout")
    assert client.get("/api/auth/session").status_code == 401


def test_bad_login_is_401(client):
    resp = client.post("/api/auth/login", json={"email": "member@example.com", "password": "nope"})
    assert resp.status_code == 401


def test_denial_carries_reason(client):
    _login_as(client, 3)
    resp = client.delete("/api/users/4")
    assert resp.status_code == 403
    assert resp.get_json()["reason"] == "InsufficientRole"


def test_missing_user_is_404(client):
    _login_as(client, 1)
    assert client.get("/api/users/99").status_code == 404


def test_validation_errors_are_400(client):
    _login_as(client, 1)
    resp = client.post("/api/users", json={"name": "X", "email": "bad", "password": "longenough"})
    assert resp.status_code == 400


def test_non_object_body_is_400(client):
    _login_as(client, 3)
    resp = client.patch("/api/users/3", json=["not", "an", "object"])
    assert resp.status_code == 400


def test_status_patch_requires_status(client, app):
    _login_as(client, 3)
    resp = client.patch("/api/tasks/5/status", json={})
    assert resp.status_code == 400
    assert app.container.task_service.calls == []


def test_conflict_is_409(client, app):
    _login_as(client, 3)
    resp = client.patch("/api/tasks/5/status", json={"status": "completed"})
    assert resp.status_code == 409
    assert app.container.task_service.calls == [(3, 5, "completed")]


def test_unexpected_error_is_500(client):
    _login_as(client, 3)
    resp = client.get("/api/tasks")
    assert resp.status_code == 500
    assert resp.get_json() == {"error": "Internal server error"}


def test_leave_decision_needs_known_action(client):
    _login_as(client, 2)
    resp = client.post("/api/leave/1/decision", json={"action": "maybe"})
    assert resp.status_code == 400


def test_bad_query_int_is_400(client):
    _login_as(client, 3)
    assert client.get("/api/tasks?project_id=abc").status_code == 400


def test_profile_lookup_by_email(client):
    _login_as(client, 3)
    resp = client.get("/api/users/by-email/other@example.com")
    assert resp.status_code == 200
    assert resp.get_json()["user"]["user_id"] == 4
    assert client.get("/api/users/by-email/ghost@example.com").status_code == 404


def test_post_announcement_maps_fields(client, app):
    _login_as(client, 2)
    resp = client.post(
        "/api/projects/1/announcements",
        json={"msg": "Kickoff", "originalName": "deck.pdf", "date": "2026-03-30T10:00:00"},
    )
    assert resp.status_code == 201
    assert resp.get_json()["announcement"]["announcement_id"] == 7
    assert app.container.project_service.posted == [(2, 1, "Kickoff", "deck.pdf", "2026-03-30T10:00:00")]


def test_delete_unknown_announcement_is_404(client):
    _login_as(client, 2)
    resp = client.delete("/api/projects/1/announcements/99")
    assert resp.status_code == 404
    assert resp.get_json()["error"] == "Announcement not found"

from __future__ import annotations

from datetime import timedelta

from flask import Flask, jsonify, session

from ..common.web import SESSION_USER_KEY, error_response, json_body, json_endpoint
from ..core.constants import DEFAULT_SESSION_DAYS
from ..core.exceptions import AuthenticationError, ValidationError


def register(app: Flask, container) -> None:
    endpoint = json_endpoint(container)

    @app.route("/api/auth/login", methods=["POST"], endpoint="login")
    def login():
        try:
            data = json_body()
            user = container.auth_service.authenticate(data.get("email", ""), data.get("password", ""))
        except (AuthenticationError, ValidationError) as e:
            return error_response(e)

        session.clear()
        session.permanent = bool(data.get("remember_me"))
        app.permanent_session_lifetime = timedelta(days=DEFAULT_SESSION_DAYS)
        session[SESSION_USER_KEY] = user.user_id
        return jsonify({"message": "Login successful", "user": user.to_public_dict()})

    @app.route("/api/auth/logout", methods=["POST"], endpoint="logout")
    def logout():
        session.clear()
        return jsonify({"message": "Logged out"})

    @app.route("/api/auth/session", methods=["GET"], endpoint="current_session")
    @endpoint
    def current_session(actor):
        user = container.user_service.get_profile(actor, actor.user_id)
        return jsonify({"user": user.to_public_dict()})

    @app.route("/api/users", methods=["GET"], endpoint="list_users")
    @endpoint
    def list_users(actor):
        users = container.user_service.list_profiles(actor)
        return jsonify({"users": [u.to_public_dict() for u in users]})

    @app.route("/api/users", methods=["POST"], endpoint="register_user")
    @endpoint
    def register_user(actor):
        data = json_body()
        user_id = container.user_service.register_user(
            actor,
            name=data.get("name", ""),
            email=data.get("email", ""),
            password=data.get("password", ""),
            role=data.get("role") or "member",
        )
        user = container.user_service.get_profile(actor, user_id)
        return jsonify({"user": user.to_public_dict()}), 201

    @app.route("/api/users/by-email/<path:email>", methods=["GET"], endpoint="get_user_by_email")
    @endpoint
    def get_user_by_email(actor, email: str):
        return jsonify({"user": container.user_service.get_profile_by_email(actor, email).to_public_dict()})

    @app.route("/api/users/<int:user_id>", methods=["GET"], endpoint="get_user")
    @endpoint
    def get_user(actor, user_id: int):
        return jsonify({"user": container.user_service.get_profile(actor, user_id).to_public_dict()})

    @app.route("/api/users/<int:user_id>", methods=["PATCH"], endpoint="update_user")
    @endpoint
    def update_user(actor, user_id: int):
        user = container.user_service.update_profile(actor, user_id, json_body())
        return jsonify({"message": "Profile updated", "user": user.to_public_dict()})

    @app.route("/api/users/<int:user_id>", methods=["DELETE"], endpoint="delete_user")
    @endpoint
    def delete_user(actor, user_id: int):
        container.user_service.delete_user(actor, user_id)
        return jsonify({"message": "User deleted"})

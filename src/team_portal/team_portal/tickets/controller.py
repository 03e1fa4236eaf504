from __future__ import annotations

from flask import Flask, jsonify

from ..common.web import json_body, json_endpoint


def register(app: Flask, container) -> None:
    endpoint = json_endpoint(container)

    @app.route("/api/tasks/<int:task_id>/tickets", methods=["GET"], endpoint="list_tickets")
    @endpoint
    def list_tickets(actor, task_id: int):
        tickets = container.ticket_service.list_tickets(actor, task_id)
        return jsonify({"tickets": [t.to_dict() for t in tickets]})

    @app.route("/api/tasks/<int:task_id>/tickets", methods=["POST"], endpoint="create_ticket")
    @endpoint
    def create_ticket(actor, task_id: int):
        ticket = container.ticket_service.create_ticket(actor, task_id, json_body())
        return jsonify({"ticket": ticket.to_dict()}), 201

    @app.route("/api/tasks/<int:task_id>/tickets/<int:ticket_id>", methods=["GET"], endpoint="get_ticket")
    @endpoint
    def get_ticket(actor, task_id: int, ticket_id: int):
        return jsonify({"ticket": container.ticket_service.get_ticket(actor, task_id, ticket_id).to_dict()})

    @app.route("/api/tasks/<int:task_id>/tickets/<int:ticket_id>", methods=["PATCH"], endpoint="update_ticket")
    @endpoint
    def update_ticket(actor, task_id: int, ticket_id: int):
        ticket = container.ticket_service.update_ticket(actor, task_id, ticket_id, json_body())
        return jsonify({"ticket": ticket.to_dict()})

    @app.route("/api/tasks/<int:task_id>/tickets/<int:ticket_id>", methods=["DELETE"], endpoint="delete_ticket")
    @endpoint
    def delete_ticket(actor, task_id: int, ticket_id: int):
        container.ticket_service.delete_ticket(actor, task_id, ticket_id)
        return jsonify({"message": "Ticket deleted"})

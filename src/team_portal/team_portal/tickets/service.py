from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Optional

from ..common.validators import require_choice, require_non_empty
from ..core.enums import TaskPriority, TicketStatus
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..events.model import TicketAssigned
from ..policy.model import Actor, TicketAction, TicketSnapshot
from ..policy.rules import authorize, filter_visible
from ..tasks.model import Task
from ..tasks.repository import TaskRepository
from ..users.repository import UserRepository
from .model import Ticket
from .repository import TicketRepository

logger = logging.getLogger(__name__)

# Anything else in an update body (task_id, version, created_at, ...) is ignored.
EDITABLE_TICKET_FIELDS = ("issue_title", "description", "assigned_to", "priority", "status", "tag", "estimated_hours")


class TicketService:
    """Use case: tickets raised against a task."""

    def __init__(self, tickets: TicketRepository, tasks: TaskRepository, users: UserRepository, events):
        self._tickets = tickets
        self._tasks = tasks
        self._users = users
        self._events = events

    def _load_task(self, task_id: int) -> Task:
        task = self._tasks.get_by_id(int(task_id))
        if not task:
            raise NotFoundError("Task not found")
        return task

    def _load(self, task: Task, ticket_id: int) -> Ticket:
        ticket = self._tickets.get(task.task_id, int(ticket_id))
        if not ticket:
            raise NotFoundError("Ticket not found")
        return ticket

    def _clean(self, changes: dict) -> dict:
        fields: dict = {}
        for key in EDITABLE_TICKET_FIELDS:
            if key in changes:
                fields[key] = changes[key]

        if "issue_title" in fields:
            fields["issue_title"] = require_non_empty(fields["issue_title"], "Issue title")
        if "description" in fields:
            fields["description"] = str(fields["description"] or "").strip()
        if "tag" in fields:
            fields["tag"] = str(fields["tag"] or "").strip()
        if "priority" in fields:
            fields["priority"] = require_choice(fields["priority"], TaskPriority, "Priority")
        if "status" in fields:
            fields["status"] = require_choice(fields["status"], TicketStatus, "Status")
        if "estimated_hours" in fields:
            fields["estimated_hours"] = _parse_hours(fields["estimated_hours"])
        if "assigned_to" in fields:
            fields["assigned_to"] = self._assignee(fields["assigned_to"])
        return fields

    def _assignee(self, raw) -> Optional[int]:
        if raw in (None, ""):
            return None
        try:
            user_id = int(raw)
        except (TypeError, ValueError):
            raise ValidationError("assigned_to must be a user id")
        if not self._users.get_by_id(user_id):
            raise ValidationError("Assigned user does not exist")
        return user_id

    def _notify_assignee(self, ticket_id: int, task_id: int, issue_title: str, user_id: Optional[int]) -> None:
        if user_id is None:
            return
        user = self._users.get_by_id(user_id)
        if user:
            self._events.publish(
                TicketAssigned(ticket_id=ticket_id, task_id=task_id, issue_title=issue_title, recipient_email=user.email)
            )

    def create_ticket(self, actor: Actor, task_id: int, data: dict) -> Ticket:
        task = self._load_task(task_id)
        draft = TicketSnapshot(
            ticket_id=None, task_id=task.task_id, assigned_to=None, task_assignee_ids=frozenset(task.assignee_ids)
        )
        authorize(actor, draft, TicketAction.CREATE)

        fields = self._clean(data)
        if "issue_title" not in fields:
            raise ValidationError("Issue title is required")
        fields["status"] = TicketStatus.OPEN

        ticket_id = self._tickets.create(task.task_id, fields)
        logger.info("Ticket %s created on task %s by %s", ticket_id, task.task_id, actor.user_id)
        self._notify_assignee(ticket_id, task.task_id, fields["issue_title"], fields.get("assigned_to"))
        return self._load(task, ticket_id)

    def list_tickets(self, actor: Actor, task_id: int) -> list[Ticket]:
        task = self._load_task(task_id)
        assignees = frozenset(task.assignee_ids)
        tickets = list(self._tickets.list_for_task(task.task_id))
        visible = {s.ticket_id for s in filter_visible(actor, TicketAction.READ, [t.snapshot(assignees) for t in tickets])}
        return [t for t in tickets if t.ticket_id in visible]

    def get_ticket(self, actor: Actor, task_id: int, ticket_id: int) -> Ticket:
        task = self._load_task(task_id)
        ticket = self._load(task, ticket_id)
        authorize(actor, ticket.snapshot(frozenset(task.assignee_ids)), TicketAction.READ)
        return ticket

    def update_ticket(self, actor: Actor, task_id: int, ticket_id: int, changes: dict) -> Ticket:
        task = self._load_task(task_id)
        ticket = self._load(task, ticket_id)
        snapshot = ticket.snapshot(frozenset(task.assignee_ids))
        authorize(actor, snapshot, TicketAction.UPDATE)

        fields = self._clean(changes)
        if not fields:
            return ticket
        if not self._tickets.update_fields(snapshot, fields):
            raise ConflictError("Ticket was changed by someone else, reload and try again")
        logger.info("Ticket %s updated by %s (%s)", ticket.ticket_id, actor.user_id, ", ".join(sorted(fields)))

        if "assigned_to" in fields and fields["assigned_to"] != ticket.assigned_to:
            self._notify_assignee(
                ticket.ticket_id, task.task_id, fields.get("issue_title", ticket.issue_title), fields["assigned_to"]
            )
        return self._load(task, ticket.ticket_id)

    def delete_ticket(self, actor: Actor, task_id: int, ticket_id: int) -> None:
        task = self._load_task(task_id)
        ticket = self._load(task, ticket_id)
        snapshot = ticket.snapshot(frozenset(task.assignee_ids))
        authorize(actor, snapshot, TicketAction.DELETE)
        if not self._tickets.delete(snapshot):
            raise ConflictError("Ticket was changed by someone else, reload and try again")
        logger.info("Ticket %s deleted by %s", ticket.ticket_id, actor.user_id)


def _parse_hours(raw) -> Optional[Decimal]:
    if raw in (None, ""):
        return None
    try:
        hours = Decimal(str(raw))
    except InvalidOperation:
        raise ValidationError("estimated_hours must be a number")
    if hours < 0:
        raise ValidationError("estimated_hours cannot be negative")
    return hours

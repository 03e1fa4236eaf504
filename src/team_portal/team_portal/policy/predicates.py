"""Resource-state predicates the decision table is built from."""
from __future__ import annotations

from ..core.enums import ApprovalStatus, Audience, ProjectState, Role
from .model import Actor, NotificationSnapshot, ProjectSnapshot, TaskSnapshot, TicketSnapshot

PRIVILEGED_ROLES = frozenset({Role.ADMIN, Role.MANAGER})


def is_privileged(actor: Actor) -> bool:
    """Admin or manager."""
    return actor.role in PRIVILEGED_ROLES


def is_self(actor: Actor, user_id: int | None) -> bool:
    return user_id is not None and actor.user_id == user_id


def is_project_ongoing(project: ProjectSnapshot) -> bool:
    return project.state == ProjectState.ONGOING


def is_project_participant(actor: Actor, project: ProjectSnapshot) -> bool:
    return actor.user_id in project.participant_ids


def is_task_assignee(actor: Actor, task: TaskSnapshot) -> bool:
    return actor.user_id in task.assignee_ids


def has_task_access(actor: Actor, ticket: TicketSnapshot) -> bool:
    """Member reaches a ticket through assignment on the parent task."""
    return actor.user_id in ticket.task_assignee_ids


def is_ticket_assignee(actor: Actor, ticket: TicketSnapshot) -> bool:
    return ticket.assigned_to is not None and ticket.assigned_to == actor.user_id


def is_pending(status: ApprovalStatus) -> bool:
    return status == ApprovalStatus.PENDING


def is_addressed_to(actor: Actor, notification: NotificationSnapshot) -> bool:
    email = (actor.email or "").lower()
    return bool(email) and email in {e.lower() for e in notification.recipient_emails}


def is_public(notification: NotificationSnapshot) -> bool:
    return notification.audience == Audience.PUBLIC

"""Role-scoped authorization: one decision table for every route.

``decide`` is a pure function of (actor, snapshot, action). List endpoints go
through ``filter_visible``, which evaluates the same ``decide`` once per
candidate, so single-item reads and collection reads can never disagree.
A denial is returned as a value; services turn it into ``AuthorizationError``
via ``authorize``.
"""
from __future__ import annotations

from typing import Callable, Iterable, Sequence, TypeVar

from ..core.enums import Audience, Role
from ..core.exceptions import AuthorizationError
from .model import (
    Actor,
    AttendanceAction,
    AttendanceSnapshot,
    Decision,
    DenyReason,
    LeaveAction,
    LeaveRuleAction,
    LeaveRuleSnapshot,
    LeaveSnapshot,
    NotificationAction,
    NotificationSnapshot,
    ProfileAction,
    ProfileSnapshot,
    ProjectAction,
    ProjectSnapshot,
    RecipientCandidate,
    TaskAction,
    TaskSnapshot,
    TicketAction,
    TicketSnapshot,
)
from .predicates import (
    has_task_access,
    is_addressed_to,
    is_pending,
    is_privileged,
    is_project_ongoing,
    is_project_participant,
    is_public,
    is_self,
    is_task_assignee,
    is_ticket_assignee,
)

T = TypeVar("T")

ALLOW = Decision.allow()
NOT_OWNER = Decision.deny(DenyReason.NOT_OWNER)
INSUFFICIENT_ROLE = Decision.deny(DenyReason.INSUFFICIENT_ROLE)
RESOURCE_CLOSED = Decision.deny(DenyReason.RESOURCE_CLOSED)
SELF_ACTION = Decision.deny(DenyReason.SELF_ACTION_NOT_ALLOWED)


def _privileged_only(actor: Actor) -> Decision:
    return ALLOW if is_privileged(actor) else INSUFFICIENT_ROLE


def _admin_only(actor: Actor) -> Decision:
    return ALLOW if actor.is_admin else INSUFFICIENT_ROLE


def _own_only(actor: Actor, user_id: int) -> Decision:
    return ALLOW if is_self(actor, user_id) else NOT_OWNER


def _approval(actor: Actor, subject_id: int, status) -> Decision:
    if not is_privileged(actor):
        return INSUFFICIENT_ROLE
    if is_self(actor, subject_id):
        return SELF_ACTION
    if not is_pending(status):
        return RESOURCE_CLOSED
    return ALLOW


# ---------- projects ----------


def _project_read(actor: Actor, project: ProjectSnapshot) -> Decision:
    if is_privileged(actor) or is_project_participant(actor, project):
        return ALLOW
    return NOT_OWNER


def _project_create_task(actor: Actor, project: ProjectSnapshot) -> Decision:
    if not is_privileged(actor):
        return INSUFFICIENT_ROLE
    if not is_project_ongoing(project):
        return RESOURCE_CLOSED
    return ALLOW


_PROJECT_RULES = {
    ProjectAction.CREATE: lambda a, p: _privileged_only(a),
    ProjectAction.READ: _project_read,
    ProjectAction.UPDATE: lambda a, p: _privileged_only(a),
    ProjectAction.CREATE_TASK: _project_create_task,
    ProjectAction.ANNOUNCE: lambda a, p: _privileged_only(a),
    ProjectAction.DELETE_ANNOUNCEMENT: lambda a, p: _privileged_only(a),
}


# ---------- tasks ----------


def _task_assignee_or_privileged(actor: Actor, task: TaskSnapshot) -> Decision:
    if is_privileged(actor) or is_task_assignee(actor, task):
        return ALLOW
    return NOT_OWNER


_TASK_RULES = {
    TaskAction.READ: _task_assignee_or_privileged,
    TaskAction.UPDATE_STATUS: _task_assignee_or_privileged,
    TaskAction.UPDATE_CHECKLIST: _task_assignee_or_privileged,
    # Managers may delete tickets, not tasks.
    TaskAction.DELETE: lambda a, t: _admin_only(a),
}


# ---------- tickets ----------


def _ticket_read(actor: Actor, ticket: TicketSnapshot) -> Decision:
    if is_privileged(actor) or has_task_access(actor, ticket):
        return ALLOW
    return NOT_OWNER


def _ticket_update(actor: Actor, ticket: TicketSnapshot) -> Decision:
    # Task-level access grants read only; members edit the tickets assigned to them.
    if is_privileged(actor) or is_ticket_assignee(actor, ticket):
        return ALLOW
    return NOT_OWNER


_TICKET_RULES = {
    TicketAction.CREATE: _ticket_read,
    TicketAction.READ: _ticket_read,
    TicketAction.UPDATE: _ticket_update,
    TicketAction.DELETE: lambda a, t: _privileged_only(a),
}


# ---------- attendance ----------


def _attendance_read(actor: Actor, record: AttendanceSnapshot) -> Decision:
    if actor.is_admin:
        return ALLOW
    return _own_only(actor, record.user_id)


def _attendance_report(actor: Actor, record: AttendanceSnapshot) -> Decision:
    # Report mode widens visibility for managers only; members still see their own rows.
    if is_privileged(actor):
        return ALLOW
    return _own_only(actor, record.user_id)


_ATTENDANCE_RULES = {
    AttendanceAction.MARK: lambda a, r: _own_only(a, r.user_id),
    AttendanceAction.APPROVE: lambda a, r: _approval(a, r.user_id, r.approval_status),
    AttendanceAction.REJECT: lambda a, r: _approval(a, r.user_id, r.approval_status),
    AttendanceAction.READ: _attendance_read,
    AttendanceAction.REPORT: _attendance_report,
}


# ---------- leave ----------


def _leave_apply(actor: Actor, leave: LeaveSnapshot) -> Decision:
    if actor.role not in (Role.MEMBER, Role.MANAGER):
        return INSUFFICIENT_ROLE
    return _own_only(actor, leave.user_id)


def _leave_report(actor: Actor, leave: LeaveSnapshot) -> Decision:
    if is_privileged(actor):
        return ALLOW
    return _own_only(actor, leave.user_id)


_LEAVE_RULES = {
    LeaveAction.APPLY: _leave_apply,
    LeaveAction.APPROVE: lambda a, lv: _approval(a, lv.user_id, lv.status),
    LeaveAction.REJECT: lambda a, lv: _approval(a, lv.user_id, lv.status),
    LeaveAction.READ: lambda a, lv: _own_only(a, lv.user_id),
    LeaveAction.REPORT: _leave_report,
}

_LEAVE_RULE_RULES = {
    LeaveRuleAction.READ: lambda a, r: ALLOW,
    LeaveRuleAction.UPDATE: lambda a, r: _admin_only(a),
}


# ---------- profiles ----------


def _profile_update(actor: Actor, profile: ProfileSnapshot) -> Decision:
    if profile.changes_role:
        if not actor.is_admin:
            return INSUFFICIENT_ROLE
        if is_self(actor, profile.user_id):
            return SELF_ACTION
        return ALLOW
    if is_self(actor, profile.user_id) or is_privileged(actor):
        return ALLOW
    return NOT_OWNER


def _profile_delete(actor: Actor, profile: ProfileSnapshot) -> Decision:
    if not actor.is_admin:
        return INSUFFICIENT_ROLE
    if is_self(actor, profile.user_id):
        return SELF_ACTION
    return ALLOW


_PROFILE_RULES = {
    ProfileAction.CREATE: lambda a, p: _admin_only(a),
    ProfileAction.READ: lambda a, p: ALLOW,
    ProfileAction.UPDATE: _profile_update,
    ProfileAction.DELETE: _profile_delete,
}


# ---------- notifications ----------


def _notification_read(actor: Actor, notification: NotificationSnapshot) -> Decision:
    if actor.is_admin or is_public(notification) or is_addressed_to(actor, notification):
        return ALLOW
    return NOT_OWNER


_NOTIFICATION_RULES = {
    NotificationAction.SEND: lambda a, n: _privileged_only(a),
    NotificationAction.READ: _notification_read,
    NotificationAction.MARK_READ: _notification_read,
    NotificationAction.DELETE: lambda a, n: _privileged_only(a),
}


# snapshot type -> (action enum, rule table)
_TABLES: dict[type, tuple[type, dict]] = {
    ProjectSnapshot: (ProjectAction, _PROJECT_RULES),
    TaskSnapshot: (TaskAction, _TASK_RULES),
    TicketSnapshot: (TicketAction, _TICKET_RULES),
    AttendanceSnapshot: (AttendanceAction, _ATTENDANCE_RULES),
    LeaveSnapshot: (LeaveAction, _LEAVE_RULES),
    LeaveRuleSnapshot: (LeaveRuleAction, _LEAVE_RULE_RULES),
    ProfileSnapshot: (ProfileAction, _PROFILE_RULES),
    NotificationSnapshot: (NotificationAction, _NOTIFICATION_RULES),
}


def _rule_for(resource, action) -> Callable[[Actor, object], Decision]:
    try:
        action_enum, rules = _TABLES[type(resource)]
    except KeyError:
        raise TypeError(f"No authorization rules for resource type {type(resource).__name__}")
    if not isinstance(action, action_enum):
        raise TypeError(f"{action!r} is not a {action_enum.__name__} (resource {type(resource).__name__})")
    try:
        return rules[action]
    except KeyError:
        raise ValueError(f"No rule registered for {action!r}")


def decide(actor: Actor, resource, action) -> Decision:
    """Allow/deny ``action`` by ``actor`` on the ``resource`` snapshot."""
    return _rule_for(resource, action)(actor, resource)


def filter_visible(actor: Actor, action, candidates: Iterable[T]) -> list[T]:
    """Keep the candidates ``decide`` allows, preserving order."""
    return [c for c in candidates if decide(actor, c, action).allowed]


def authorize(actor: Actor, resource, action) -> Decision:
    """``decide`` for services: raise AuthorizationError on denial."""
    decision = decide(actor, resource, action)
    if not decision.allowed:
        raise AuthorizationError(decision.reason)
    return decision


_AUDIENCE_ROLES = {
    Audience.PUBLIC: frozenset({Role.ADMIN, Role.MANAGER}),
    Audience.PRIVATE: frozenset({Role.ADMIN, Role.MANAGER, Role.MEMBER}),
}


def resolve_recipients(audience: Audience, candidates: Sequence[RecipientCandidate]) -> list[RecipientCandidate]:
    """Narrow a recipient list to the roles an audience may address.

    Ineligible candidates are dropped rather than failing the send.
    """
    allowed_roles = _AUDIENCE_ROLES[Audience(audience)]
    seen: set[str] = set()
    out: list[RecipientCandidate] = []
    for c in candidates:
        key = c.email.lower()
        if c.role in allowed_roles and key not in seen:
            seen.add(key)
            out.append(c)
    return out

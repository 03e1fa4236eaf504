"""Exhaustive checks over small generated populations of actors and resources."""
from __future__ import annotations

import itertools

import pytest

from team_portal.core.enums import ApprovalStatus, Audience, ProjectRole, ProjectState, Role, TaskStatus
from team_portal.policy.model import (
    Actor,
    AttendanceAction,
    AttendanceSnapshot,
    LeaveAction,
    LeaveSnapshot,
    NotificationAction,
    NotificationSnapshot,
    ParticipantSnapshot,
    ProfileAction,
    ProfileSnapshot,
    ProjectAction,
    ProjectSnapshot,
    TaskAction,
    TaskSnapshot,
    TicketAction,
    TicketSnapshot,
)
from team_portal.policy.rules import decide, filter_visible

USER_IDS = (1, 2, 3)

ACTORS = [Actor(user_id=uid, role=role, email=f"u{uid}@example.com") for uid in USER_IDS for role in Role]


def _subsets(values):
    return [frozenset(c) for n in range(len(values) + 1) for c in itertools.combinations(values, n)]


TASKS = [
    TaskSnapshot(task_id=i, project_id=1, created_by=1, assigned_by=1, assignee_ids=s, status=TaskStatus.PENDING)
    for i, s in enumerate(_subsets(USER_IDS))
]

TICKETS = [
    TicketSnapshot(ticket_id=i, task_id=1, assigned_to=assigned, task_assignee_ids=s)
    for i, (assigned, s) in enumerate(itertools.product((None,) + USER_IDS, _subsets(USER_IDS)))
]

PROJECTS = [
    ProjectSnapshot(
        project_id=i,
        state=state,
        participants=tuple(
            ParticipantSnapshot(user_id=u, email=f"u{u}@example.com", role_in_project=ProjectRole.PROJECT_MEMBER)
            for u in sorted(s)
        ),
    )
    for i, (state, s) in enumerate(itertools.product(ProjectState, _subsets(USER_IDS)))
]

ATTENDANCE = [
    AttendanceSnapshot(attendance_id=i, user_id=u, approval_status=st)
    for i, (u, st) in enumerate(itertools.product(USER_IDS, ApprovalStatus))
]

LEAVES = [
    LeaveSnapshot(leave_id=i, user_id=u, status=st) for i, (u, st) in enumerate(itertools.product(USER_IDS, ApprovalStatus))
]

NOTIFICATIONS = [
    NotificationSnapshot(
        notification_id=i,
        from_email="u1@example.com",
        audience=aud,
        recipient_emails=frozenset(f"u{u}@example.com" for u in s),
    )
    for i, (aud, s) in enumerate(itertools.product(Audience, _subsets(USER_IDS)))
]

PROFILES = [
    ProfileSnapshot(user_id=u, role=role, requested_role=req)
    for u, role, req in itertools.product(USER_IDS, Role, (None,) + tuple(Role))
]

CASES = [
    (TASKS, TaskAction.READ),
    (TICKETS, TicketAction.READ),
    (PROJECTS, ProjectAction.READ),
    (ATTENDANCE, AttendanceAction.READ),
    (ATTENDANCE, AttendanceAction.REPORT),
    (LEAVES, LeaveAction.READ),
    (LEAVES, LeaveAction.REPORT),
    (NOTIFICATIONS, NotificationAction.READ),
    (PROFILES, ProfileAction.READ),
]


@pytest.mark.parametrize("resources,action", CASES, ids=lambda v: getattr(v, "name", None) or type(v).__name__)
def test_single_item_and_collection_reads_agree(resources, action):
    for actor in ACTORS:
        visible = filter_visible(actor, action, resources)
        for r in resources:
            assert decide(actor, r, action).allowed == (r in visible)
            assert filter_visible(actor, action, [r]) == ([r] if decide(actor, r, action).allowed else [])


def test_filter_keeps_input_order():
    actor = Actor(user_id=1, role=Role.MEMBER)
    visible = filter_visible(actor, TaskAction.READ, TASKS)
    assert visible == [t for t in TASKS if 1 in t.assignee_ids]


def test_member_update_status_iff_assignee():
    for actor in (a for a in ACTORS if a.role == Role.MEMBER):
        for task in TASKS:
            assert decide(actor, task, TaskAction.UPDATE_STATUS).allowed == (actor.user_id in task.assignee_ids)


def test_member_ticket_update_iff_ticket_assignee():
    for actor in (a for a in ACTORS if a.role == Role.MEMBER):
        for ticket in TICKETS:
            assert decide(actor, ticket, TicketAction.UPDATE).allowed == (ticket.assigned_to == actor.user_id)


def test_delete_table_for_privileged_roles():
    for actor in (a for a in ACTORS if a.role in (Role.ADMIN, Role.MANAGER)):
        for task in TASKS:
            assert decide(actor, task, TaskAction.DELETE).allowed == (actor.role == Role.ADMIN)
        for ticket in TICKETS:
            assert decide(actor, ticket, TicketAction.DELETE).allowed


def test_decide_is_repeatable():
    population = TASKS + TICKETS + ATTENDANCE + LEAVES
    actions = {
        TaskSnapshot: list(TaskAction),
        TicketSnapshot: list(TicketAction),
        AttendanceSnapshot: list(AttendanceAction),
        LeaveSnapshot: list(LeaveAction),
    }
    for actor in ACTORS:
        for resource in population:
            for action in actions[type(resource)]:
                assert decide(actor, resource, action) == decide(actor, resource, action)

from __future__ import annotations

import pytest

from team_portal.core.enums import ApprovalStatus, Audience, ProjectRole, ProjectState, Role, TaskStatus
from team_portal.core.exceptions import AuthorizationError
from team_portal.policy.model import (
    Actor,
    AttendanceAction,
    AttendanceSnapshot,
    DenyReason,
    LeaveAction,
    LeaveRuleAction,
    LeaveRuleSnapshot,
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
from team_portal.policy.rules import authorize, decide


def _task(assignees=(3,)):
    return TaskSnapshot(
        task_id=10,
        project_id=1,
        created_by=2,
        assigned_by=2,
        assignee_ids=frozenset(assignees),
        status=TaskStatus.PENDING,
    )


def _ticket(assigned_to=None, task_assignees=(3,)):
    return TicketSnapshot(ticket_id=7, task_id=10, assigned_to=assigned_to, task_assignee_ids=frozenset(task_assignees))


def _project(state=ProjectState.ONGOING, participants=(3,)):
    return ProjectSnapshot(
        project_id=1,
        state=state,
        participants=tuple(
            ParticipantSnapshot(user_id=uid, email=f"u{uid}@example.com", role_in_project=ProjectRole.PROJECT_MEMBER)
            for uid in participants
        ),
    )


# ---------- tasks ----------


def test_task_delete_is_admin_only(admin, manager, member):
    task = _task()
    assert decide(admin, task, TaskAction.DELETE).allowed
    assert decide(manager, task, TaskAction.DELETE).reason == DenyReason.INSUFFICIENT_ROLE
    assert decide(member, task, TaskAction.DELETE).reason == DenyReason.INSUFFICIENT_ROLE


def test_task_read_for_member_depends_on_assignment(member, other_member):
    task = _task(assignees=(3,))
    assert decide(member, task, TaskAction.READ).allowed
    assert decide(other_member, task, TaskAction.READ).reason == DenyReason.NOT_OWNER


def test_privileged_roles_read_and_update_any_task(admin, manager):
    task = _task(assignees=())
    for actor in (admin, manager):
        assert decide(actor, task, TaskAction.READ).allowed
        assert decide(actor, task, TaskAction.UPDATE_STATUS).allowed
        assert decide(actor, task, TaskAction.UPDATE_CHECKLIST).allowed


def test_checklist_follows_status_rule(member, other_member):
    task = _task(assignees=(3,))
    assert decide(member, task, TaskAction.UPDATE_CHECKLIST).allowed
    assert decide(other_member, task, TaskAction.UPDATE_CHECKLIST).reason == DenyReason.NOT_OWNER


# ---------- tickets ----------


def test_ticket_delete_allowed_for_manager_not_member(admin, manager, member):
    ticket = _ticket(assigned_to=3)
    assert decide(admin, ticket, TicketAction.DELETE).allowed
    assert decide(manager, ticket, TicketAction.DELETE).allowed
    assert decide(member, ticket, TicketAction.DELETE).reason == DenyReason.INSUFFICIENT_ROLE


def test_ticket_create_needs_task_access(member, other_member, manager):
    draft = TicketSnapshot(ticket_id=None, task_id=10, assigned_to=None, task_assignee_ids=frozenset({3}))
    assert decide(member, draft, TicketAction.CREATE).allowed
    assert decide(manager, draft, TicketAction.CREATE).allowed
    assert decide(other_member, draft, TicketAction.CREATE).reason == DenyReason.NOT_OWNER


def test_ticket_assignee_outside_task_can_update_but_not_read(other_member):
    # Assigned the ticket directly without being on the task.
    ticket = _ticket(assigned_to=4, task_assignees=(3,))
    assert decide(other_member, ticket, TicketAction.UPDATE).allowed
    assert decide(other_member, ticket, TicketAction.READ).reason == DenyReason.NOT_OWNER


# ---------- projects ----------


def test_project_writes_privileged_only(admin, manager, member):
    project = _project()
    for action in (ProjectAction.CREATE, ProjectAction.UPDATE, ProjectAction.ANNOUNCE, ProjectAction.DELETE_ANNOUNCEMENT):
        assert decide(admin, project, action).allowed
        assert decide(manager, project, action).allowed
        assert decide(member, project, action).reason == DenyReason.INSUFFICIENT_ROLE


def test_project_read_for_participants(member, other_member):
    project = _project(participants=(3,))
    assert decide(member, project, ProjectAction.READ).allowed
    assert decide(other_member, project, ProjectAction.READ).reason == DenyReason.NOT_OWNER


@pytest.mark.parametrize(
    "state", [ProjectState.DEPLOYMENT, ProjectState.COMPLETED, ProjectState.PAUSED, ProjectState.CANCELLED]
)
def test_no_new_tasks_on_a_project_that_is_not_ongoing(manager, state):
    assert decide(manager, _project(state=state), ProjectAction.CREATE_TASK).reason == DenyReason.RESOURCE_CLOSED


def test_create_task_role_checked_before_project_state(member):
    project = _project(state=ProjectState.PAUSED)
    assert decide(member, project, ProjectAction.CREATE_TASK).reason == DenyReason.INSUFFICIENT_ROLE


def test_participant_reads_but_cannot_announce(member):
    project = _project(participants=(3,))
    assert decide(member, project, ProjectAction.READ).allowed
    assert decide(member, project, ProjectAction.ANNOUNCE).reason == DenyReason.INSUFFICIENT_ROLE


# ---------- attendance ----------


def test_attendance_mark_only_for_self(member, admin):
    own = AttendanceSnapshot(attendance_id=None, user_id=3)
    assert decide(member, own, AttendanceAction.MARK).allowed
    assert decide(admin, own, AttendanceAction.MARK).reason == DenyReason.NOT_OWNER


def test_attendance_read_vs_report_asymmetry(admin, manager, member):
    someone_else = AttendanceSnapshot(attendance_id=5, user_id=4)
    assert decide(admin, someone_else, AttendanceAction.READ).allowed
    assert decide(manager, someone_else, AttendanceAction.READ).reason == DenyReason.NOT_OWNER
    assert decide(manager, someone_else, AttendanceAction.REPORT).allowed
    assert decide(member, someone_else, AttendanceAction.REPORT).reason == DenyReason.NOT_OWNER


@pytest.mark.parametrize("action", [AttendanceAction.APPROVE, AttendanceAction.REJECT])
def test_attendance_approval_checks(action, admin, manager, member):
    pending = AttendanceSnapshot(attendance_id=5, user_id=3)
    assert decide(admin, pending, action).allowed
    assert decide(manager, pending, action).allowed
    assert decide(member, pending, action).reason == DenyReason.INSUFFICIENT_ROLE

    own = AttendanceSnapshot(attendance_id=6, user_id=manager.user_id)
    assert decide(manager, own, action).reason == DenyReason.SELF_ACTION_NOT_ALLOWED

    decided = AttendanceSnapshot(attendance_id=7, user_id=3, approval_status=ApprovalStatus.APPROVED)
    assert decide(admin, decided, action).reason == DenyReason.RESOURCE_CLOSED


# ---------- leave ----------


def test_admin_cannot_apply_for_leave(admin, manager, member):
    assert decide(admin, LeaveSnapshot(leave_id=None, user_id=1), LeaveAction.APPLY).reason == DenyReason.INSUFFICIENT_ROLE
    assert decide(manager, LeaveSnapshot(leave_id=None, user_id=2), LeaveAction.APPLY).allowed
    assert decide(member, LeaveSnapshot(leave_id=None, user_id=3), LeaveAction.APPLY).allowed
    assert decide(member, LeaveSnapshot(leave_id=None, user_id=4), LeaveAction.APPLY).reason == DenyReason.NOT_OWNER


def test_leave_read_is_own_only_even_for_admin(admin):
    assert decide(admin, LeaveSnapshot(leave_id=1, user_id=3), LeaveAction.READ).reason == DenyReason.NOT_OWNER
    assert decide(admin, LeaveSnapshot(leave_id=1, user_id=3), LeaveAction.REPORT).allowed


def test_leave_decided_twice_is_closed(manager):
    rejected = LeaveSnapshot(leave_id=1, user_id=3, status=ApprovalStatus.REJECTED)
    assert decide(manager, rejected, LeaveAction.APPROVE).reason == DenyReason.RESOURCE_CLOSED


def test_leave_rule_update_admin_only(admin, manager, member):
    rule = LeaveRuleSnapshot(max_paid_leaves_per_month=2)
    assert decide(admin, rule, LeaveRuleAction.UPDATE).allowed
    assert decide(manager, rule, LeaveRuleAction.UPDATE).reason == DenyReason.INSUFFICIENT_ROLE
    assert decide(member, rule, LeaveRuleAction.READ).allowed


# ---------- profiles ----------


def test_member_updates_only_own_profile(member, other_member):
    own = ProfileSnapshot(user_id=3, role=Role.MEMBER)
    assert decide(member, own, ProfileAction.UPDATE).allowed
    theirs = ProfileSnapshot(user_id=4, role=Role.MEMBER)
    assert decide(member, theirs, ProfileAction.UPDATE).reason == DenyReason.NOT_OWNER


def test_role_change_is_admin_only(admin, manager):
    promote = ProfileSnapshot(user_id=3, role=Role.MEMBER, requested_role=Role.MANAGER)
    assert decide(admin, promote, ProfileAction.UPDATE).allowed
    assert decide(manager, promote, ProfileAction.UPDATE).reason == DenyReason.INSUFFICIENT_ROLE


def test_unchanged_role_field_is_not_a_role_change(manager):
    same = ProfileSnapshot(user_id=3, role=Role.MEMBER, requested_role=Role.MEMBER)
    assert decide(manager, same, ProfileAction.UPDATE).allowed


def test_profile_delete(admin, manager):
    assert decide(admin, ProfileSnapshot(user_id=3, role=Role.MEMBER), ProfileAction.DELETE).allowed
    assert decide(admin, ProfileSnapshot(user_id=1, role=Role.ADMIN), ProfileAction.DELETE).reason == (
        DenyReason.SELF_ACTION_NOT_ALLOWED
    )
    assert decide(manager, ProfileSnapshot(user_id=3, role=Role.MEMBER), ProfileAction.DELETE).reason == (
        DenyReason.INSUFFICIENT_ROLE
    )


def test_only_admin_creates_accounts(admin, manager):
    draft = ProfileSnapshot(user_id=None, role=Role.MEMBER)
    assert decide(admin, draft, ProfileAction.CREATE).allowed
    assert decide(manager, draft, ProfileAction.CREATE).reason == DenyReason.INSUFFICIENT_ROLE


# ---------- notifications ----------


def test_notification_read(admin, member, other_member):
    private = NotificationSnapshot(
        notification_id=1, from_email="manager@example.com", audience=Audience.PRIVATE,
        recipient_emails=frozenset({"Member@Example.com"}),
    )
    public = NotificationSnapshot(notification_id=2, from_email="manager@example.com", audience=Audience.PUBLIC)
    assert decide(admin, private, NotificationAction.READ).allowed
    assert decide(member, private, NotificationAction.READ).allowed
    assert decide(other_member, private, NotificationAction.READ).reason == DenyReason.NOT_OWNER
    assert decide(other_member, public, NotificationAction.READ).allowed
    assert decide(other_member, private, NotificationAction.MARK_READ).reason == DenyReason.NOT_OWNER


def test_notification_send_and_delete_privileged_only(manager, member):
    draft = NotificationSnapshot(notification_id=None, from_email="x@example.com", audience=Audience.PUBLIC)
    assert decide(manager, draft, NotificationAction.SEND).allowed
    assert decide(member, draft, NotificationAction.SEND).reason == DenyReason.INSUFFICIENT_ROLE
    assert decide(member, draft, NotificationAction.DELETE).reason == DenyReason.INSUFFICIENT_ROLE


# ---------- programmer errors ----------


def test_action_of_the_wrong_resource_type_raises(admin):
    with pytest.raises(TypeError):
        decide(admin, _task(), TicketAction.READ)


def test_unknown_resource_type_raises(admin):
    with pytest.raises(TypeError):
        decide(admin, object(), TaskAction.READ)


def test_authorize_raises_with_reason(member):
    with pytest.raises(AuthorizationError) as exc:
        authorize(member, _task(assignees=(9,)), TaskAction.UPDATE_STATUS)
    assert exc.value.reason == DenyReason.NOT_OWNER


def test_authorize_returns_decision_on_allow(admin):
    assert authorize(admin, _task(), TaskAction.DELETE).allowed


def test_decision_is_truthy_only_when_allowed(admin, member):
    assert decide(admin, _task(), TaskAction.DELETE)
    assert not decide(member, _task(), TaskAction.DELETE)


def test_actor_without_role_privileges_is_plain_member():
    guest = Actor(user_id=99, role=Role.MEMBER)
    assert not guest.is_admin and not guest.is_manager

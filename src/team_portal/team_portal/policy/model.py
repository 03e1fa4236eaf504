"""Value types consumed and produced by the authorization policy.

Snapshots are read-only projections of persisted records carrying exactly the
fields a decision needs. ``version`` is the row version the snapshot was read
at; repositories use it to make the mutation conditional on the state that
was authorized.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Optional

from ..core.enums import ApprovalStatus, Audience, ProjectRole, ProjectState, Role, TaskStatus, TicketStatus


@dataclass(frozen=True)
class Actor:
    """The authenticated user making a request."""

    user_id: int
    role: Role
    email: str = ""

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def is_manager(self) -> bool:
        return self.role == Role.MANAGER


class DenyReason(str, Enum):
    NOT_OWNER = "NotOwner"
    INSUFFICIENT_ROLE = "InsufficientRole"
    RESOURCE_CLOSED = "ResourceClosed"
    SELF_ACTION_NOT_ALLOWED = "SelfActionNotAllowed"

    @property
    def message(self) -> str:
        return _DENY_MESSAGES[self]


_DENY_MESSAGES = {
    DenyReason.NOT_OWNER: "You can only act on resources assigned to you",
    DenyReason.INSUFFICIENT_ROLE: "Your role does not allow this action",
    DenyReason.RESOURCE_CLOSED: "This resource is closed for changes",
    DenyReason.SELF_ACTION_NOT_ALLOWED: "You cannot perform this action on yourself",
}


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: Optional[DenyReason] = None

    @classmethod
    def allow(cls) -> "Decision":
        return _ALLOW

    @classmethod
    def deny(cls, reason: DenyReason) -> "Decision":
        return cls(allowed=False, reason=reason)

    def __bool__(self) -> bool:
        return self.allowed


_ALLOW = Decision(allowed=True)


# ---------- actions ----------


class ProjectAction(str, Enum):
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    CREATE_TASK = "create_task"
    ANNOUNCE = "announce"
    DELETE_ANNOUNCEMENT = "delete_announcement"


class TaskAction(str, Enum):
    READ = "read"
    UPDATE_STATUS = "update_status"
    UPDATE_CHECKLIST = "update_checklist"
    DELETE = "delete"


class TicketAction(str, Enum):
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"


class AttendanceAction(str, Enum):
    MARK = "mark"
    APPROVE = "approve"
    REJECT = "reject"
    READ = "read"
    REPORT = "report"


class LeaveAction(str, Enum):
    APPLY = "apply"
    APPROVE = "approve"
    REJECT = "reject"
    READ = "read"
    REPORT = "report"


class LeaveRuleAction(str, Enum):
    READ = "read"
    UPDATE = "update"


class ProfileAction(str, Enum):
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"


class NotificationAction(str, Enum):
    SEND = "send"
    READ = "read"
    MARK_READ = "mark_read"
    DELETE = "delete"


# ---------- snapshots ----------


@dataclass(frozen=True)
class ParticipantSnapshot:
    user_id: int
    email: str
    role_in_project: ProjectRole


@dataclass(frozen=True)
class ProjectSnapshot:
    project_id: Optional[int]
    state: ProjectState
    participants: tuple[ParticipantSnapshot, ...] = ()
    version: int = 0

    @property
    def participant_ids(self) -> FrozenSet[int]:
        return frozenset(p.user_id for p in self.participants)


@dataclass(frozen=True)
class TaskSnapshot:
    task_id: int
    project_id: int
    created_by: Optional[int]
    assigned_by: Optional[int]
    assignee_ids: FrozenSet[int]
    status: TaskStatus
    version: int = 0


@dataclass(frozen=True)
class TicketSnapshot:
    """A ticket together with the assignee set of its parent task.

    ``ticket_id`` is ``None`` for a ticket that is about to be created.
    """

    ticket_id: Optional[int]
    task_id: int
    assigned_to: Optional[int]
    task_assignee_ids: FrozenSet[int]
    status: TicketStatus = TicketStatus.OPEN
    version: int = 0


@dataclass(frozen=True)
class AttendanceSnapshot:
    attendance_id: Optional[int]
    user_id: int
    approval_status: ApprovalStatus = ApprovalStatus.PENDING
    version: int = 0


@dataclass(frozen=True)
class LeaveSnapshot:
    leave_id: Optional[int]
    user_id: int
    status: ApprovalStatus = ApprovalStatus.PENDING
    version: int = 0


@dataclass(frozen=True)
class LeaveRuleSnapshot:
    max_paid_leaves_per_month: int
    version: int = 0


@dataclass(frozen=True)
class ProfileSnapshot:
    """Target profile of a read/update/delete.

    ``requested_role`` is the role an update asks for (``None`` when the
    update leaves the role field alone).
    """

    user_id: Optional[int]
    role: Role
    email: str = ""
    requested_role: Optional[Role] = None
    version: int = 0

    @property
    def changes_role(self) -> bool:
        return self.requested_role is not None and self.requested_role != self.role


@dataclass(frozen=True)
class NotificationSnapshot:
    notification_id: Optional[int]
    from_email: str
    audience: Audience
    recipient_emails: FrozenSet[str] = field(default_factory=frozenset)


@dataclass(frozen=True)
class RecipientCandidate:
    user_id: int
    email: str
    role: Role

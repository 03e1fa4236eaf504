from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Global user role used for authorization."""

    ADMIN = "admin"
    MANAGER = "manager"
    MEMBER = "member"


class ProjectRole(str, Enum):
    PROJECT_MANAGER = "project-manager"
    PROJECT_MEMBER = "project-member"


class ProjectState(str, Enum):
    ONGOING = "ongoing"
    DEPLOYMENT = "deployment"
    COMPLETED = "completed"
    PAUSED = "paused"
    CANCELLED = "cancelled"


class TaskStatus(str, Enum):
    PENDING = "pending"
    ONGOING = "ongoing"
    DEPLOYMENT = "deployment"
    COMPLETED = "completed"


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class TicketStatus(str, Enum):
    OPEN = "open"
    PENDING = "pending"
    COMPLETED = "completed"


class WorkMode(str, Enum):
    OFFICE = "office"
    WFH = "wfh"


class PresenceStatus(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"
    PENDING = "pending"


class ApprovalStatus(str, Enum):
    """Approval workflow state shared by attendance records and leave requests."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class LeaveType(str, Enum):
    PAID = "paid"
    SICK = "sick"
    CASUAL = "casual"


class ProfileState(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class Audience(str, Enum):
    """Who a notification is addressed to (``dataTo``)."""

    PUBLIC = "public"
    PRIVATE = "private"


class ReadState(str, Enum):
    READ = "read"
    UNREAD = "unread"

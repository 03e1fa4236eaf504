"""Events published by services after a successful write."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional


@dataclass(frozen=True)
class TaskAssigned:
    task_id: int
    title: str
    assigned_by_email: str
    recipient_emails: tuple[str, ...]


@dataclass(frozen=True)
class TaskStatusChanged:
    task_id: int
    title: str
    status: str
    changed_by_email: str
    recipient_emails: tuple[str, ...]


@dataclass(frozen=True)
class TicketAssigned:
    ticket_id: int
    task_id: int
    issue_title: str
    recipient_email: str


@dataclass(frozen=True)
class AttendanceMarked:
    attendance_id: int
    user_name: str
    user_email: str
    work_date: date
    work_mode: str


@dataclass(frozen=True)
class AttendanceDecided:
    attendance_id: int
    user_email: str
    work_date: date
    approval_status: str
    decided_by_email: str


@dataclass(frozen=True)
class LeaveApplied:
    leave_id: int
    user_name: str
    user_email: str
    leave_type: str
    start_date: date
    end_date: date
    reason: Optional[str] = None


@dataclass(frozen=True)
class LeaveDecided:
    leave_id: int
    user_email: str
    status: str
    start_date: date
    end_date: date
    decided_by_email: str


@dataclass(frozen=True)
class TaskCompleted:
    task_id: int
    title: str
    completed_by_email: str
    recipient_email: str

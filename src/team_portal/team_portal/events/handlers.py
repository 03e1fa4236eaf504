from __future__ import annotations

from .dispatcher import EventDispatcher
from .mailer import SmtpMailer
from .model import (
    AttendanceDecided,
    AttendanceMarked,
    LeaveApplied,
    LeaveDecided,
    TaskAssigned,
    TaskCompleted,
    TaskStatusChanged,
    TicketAssigned,
)


class EmailNotifier:
    """Turns domain events into plain-text mails."""

    def __init__(self, mailer: SmtpMailer, *, admin_email: str = ""):
        self._mailer = mailer
        self._admin_email = admin_email

    def register(self, dispatcher: EventDispatcher) -> None:
        dispatcher.subscribe(TaskAssigned, self.on_task_assigned)
        dispatcher.subscribe(TaskStatusChanged, self.on_task_status_changed)
        dispatcher.subscribe(TaskCompleted, self.on_task_completed)
        dispatcher.subscribe(TicketAssigned, self.on_ticket_assigned)
        dispatcher.subscribe(AttendanceMarked, self.on_attendance_marked)
        dispatcher.subscribe(AttendanceDecided, self.on_attendance_decided)
        dispatcher.subscribe(LeaveApplied, self.on_leave_applied)
        dispatcher.subscribe(LeaveDecided, self.on_leave_decided)

    def on_task_assigned(self, event: TaskAssigned) -> None:
        body = f"You have been assigned to task #{event.task_id}: {event.title}\nAssigned by: {event.assigned_by_email}\n"
        for email in event.recipient_emails:
            self._mailer.send(email, f"New task: {event.title}", body)

    def on_task_status_changed(self, event: TaskStatusChanged) -> None:
        body = (
            f"Task #{event.task_id} ({event.title}) is now '{event.status}'.\n"
            f"Updated by: {event.changed_by_email}\n"
        )
        for email in event.recipient_emails:
            self._mailer.send(email, f"Task {event.status}: {event.title}", body)

    def on_task_completed(self, event: TaskCompleted) -> None:
        self._mailer.send(
            event.recipient_email,
            f"Task completed: {event.title}",
            f"Task #{event.task_id} ({event.title}) was marked completed by {event.completed_by_email}.\n",
        )

    def on_ticket_assigned(self, event: TicketAssigned) -> None:
        self._mailer.send(
            event.recipient_email,
            f"Ticket assigned: {event.issue_title}",
            f"Ticket #{event.ticket_id} on task #{event.task_id} is assigned to you.\n\n{event.issue_title}\n",
        )

    def on_attendance_marked(self, event: AttendanceMarked) -> None:
        self._mailer.send(
            self._admin_email,
            f"Attendance marked by {event.user_name}",
            (
                f"{event.user_name} <{event.user_email}> marked attendance for "
                f"{event.work_date.isoformat()} ({event.work_mode}).\n"
                "The record is waiting for approval.\n"
            ),
        )

    def on_attendance_decided(self, event: AttendanceDecided) -> None:
        self._mailer.send(
            event.user_email,
            f"Attendance {event.approval_status}",
            f"Your attendance for {event.work_date.isoformat()} was {event.approval_status} by {event.decided_by_email}.\n",
        )

    def on_leave_applied(self, event: LeaveApplied) -> None:
        self._mailer.send(
            self._admin_email,
            f"Leave request from {event.user_name}",
            (
                f"{event.user_name} <{event.user_email}> applied for {event.leave_type} leave "
                f"from {event.start_date.isoformat()} to {event.end_date.isoformat()}.\n"
                f"Reason: {event.reason or '-'}\n"
            ),
        )

    def on_leave_decided(self, event: LeaveDecided) -> None:
        self._mailer.send(
            event.user_email,
            f"Leave {event.status}",
            (
                f"Your leave from {event.start_date.isoformat()} to {event.end_date.isoformat()} "
                f"was {event.status} by {event.decided_by_email}.\n"
            ),
        )

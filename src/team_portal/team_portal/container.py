from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.service import AttendanceService
from .database.connection import DBConfig, DatabaseConnection
from .events.dispatcher import EventDispatcher
from .events.handlers import EmailNotifier
from .events.mailer import SmtpMailer
from .leave.mysql_leave_repository import MySQLLeaveRepository, MySQLLeaveRuleRepository
from .leave.service import LeaveService
from .notifications.mysql_notification_repository import MySQLNotificationRepository
from .notifications.service import NotificationService
from .projects.mysql_project_repository import MySQLProjectRepository
from .projects.service import ProjectService
from .tasks.mysql_task_repository import MySQLTaskRepository
from .tasks.service import TaskService
from .tickets.mysql_ticket_repository import MySQLTicketRepository
from .tickets.service import TicketService
from .users.mysql_user_repository import MySQLUserRepository
from .users.service import AuthService, UserService


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection
    dispatcher: EventDispatcher

    users_repo: MySQLUserRepository
    projects_repo: MySQLProjectRepository
    tasks_repo: MySQLTaskRepository
    tickets_repo: MySQLTicketRepository
    attendance_repo: MySQLAttendanceRepository
    leaves_repo: MySQLLeaveRepository
    leave_rule_repo: MySQLLeaveRuleRepository
    notifications_repo: MySQLNotificationRepository

    auth_service: AuthService
    user_service: UserService
    project_service: ProjectService
    task_service: TaskService
    ticket_service: TicketService
    attendance_service: AttendanceService
    leave_service: LeaveService
    notification_service: NotificationService


def build_container(*, db_config: dict, mail_settings: Mapping | None = None) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    mail_settings = mail_settings or {}
    dispatcher = EventDispatcher()
    EmailNotifier(SmtpMailer.from_config(mail_settings), admin_email=mail_settings.get("ADMIN_EMAIL") or "").register(
        dispatcher
    )

    users_repo = MySQLUserRepository(conn)
    projects_repo = MySQLProjectRepository(conn)
    tasks_repo = MySQLTaskRepository(conn)
    tickets_repo = MySQLTicketRepository(conn)
    attendance_repo = MySQLAttendanceRepository(conn)
    leaves_repo = MySQLLeaveRepository(conn)
    leave_rule_repo = MySQLLeaveRuleRepository(conn)
    notifications_repo = MySQLNotificationRepository(conn)

    return Container(
        conn=conn,
        dispatcher=dispatcher,
        users_repo=users_repo,
        projects_repo=projects_repo,
        tasks_repo=tasks_repo,
        tickets_repo=tickets_repo,
        attendance_repo=attendance_repo,
        leaves_repo=leaves_repo,
        leave_rule_repo=leave_rule_repo,
        notifications_repo=notifications_repo,
        auth_service=AuthService(users_repo),
        user_service=UserService(users_repo),
        project_service=ProjectService(projects_repo, users_repo),
        task_service=TaskService(tasks_repo, projects_repo, users_repo, dispatcher),
        ticket_service=TicketService(tickets_repo, tasks_repo, users_repo, dispatcher),
        attendance_service=AttendanceService(attendance_repo, users_repo, dispatcher),
        leave_service=LeaveService(leaves_repo, leave_rule_repo, users_repo, dispatcher),
        notification_service=NotificationService(notifications_repo, users_repo),
    )

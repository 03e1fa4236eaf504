from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Iterable, Optional

from ..common.datetime_utils import parse_optional_date
from ..common.validators import require_choice, require_non_empty
from ..core.enums import ProjectRole, TaskPriority, TaskStatus
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..events.model import TaskAssigned, TaskCompleted, TaskStatusChanged
from ..policy.model import Actor, ProjectAction, TaskAction
from ..policy.rules import authorize, filter_visible
from ..projects.repository import ProjectRepository
from ..users.repository import UserRepository
from .model import Task
from .repository import TaskRepository

logger = logging.getLogger(__name__)

_STALE = "Task was changed by someone else, reload and try again"


class TaskService:
    """Use case: create tasks, move them through their statuses, tick checklist items."""

    def __init__(
        self,
        tasks: TaskRepository,
        projects: ProjectRepository,
        users: UserRepository,
        events,
        *,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._tasks = tasks
        self._projects = projects
        self._users = users
        self._events = events
        self._clock = clock

    def _load(self, task_id: int) -> Task:
        task = self._tasks.get_by_id(int(task_id))
        if not task:
            raise NotFoundError("Task not found")
        return task

    def create_task(
        self,
        actor: Actor,
        *,
        project_id: int,
        title: str,
        description: str = "",
        priority: str | TaskPriority = TaskPriority.MEDIUM,
        due_date: Optional[str] = None,
        assignee_ids: Iterable[int] = (),
        checklist: Iterable[str] = (),
    ) -> Task:
        project = self._projects.get_by_id(int(project_id))
        if not project:
            raise NotFoundError("Project not found")
        authorize(actor, project.snapshot(), ProjectAction.CREATE_TASK)

        title = require_non_empty(title, "Title")
        priority = require_choice(priority or TaskPriority.MEDIUM, TaskPriority, "Priority")
        due = parse_optional_date(due_date)

        try:
            assignees = list(dict.fromkeys(int(a) for a in assignee_ids or ()))
        except (TypeError, ValueError):
            raise ValidationError("Assignee ids must be integers")
        if not assignees:
            raise ValidationError("Assign the task to at least one participant")
        outsiders = [a for a in assignees if a not in project.snapshot().participant_ids]
        if outsiders:
            raise ValidationError(f"Not a participant of this project: {', '.join(str(o) for o in outsiders)}")

        items = [str(i).strip() for i in checklist or () if str(i or "").strip()]

        task_id = self._tasks.create(
            project_id=project.project_id,
            title=title,
            description=(description or "").strip(),
            priority=priority,
            due_date=due,
            created_by=actor.user_id,
            assignee_ids=assignees,
            checklist=items,
        )
        logger.info("Task %s created in project %s by %s", task_id, project.project_id, actor.user_id)

        emails = {p.user_id: p.email for p in project.participants}
        self._events.publish(
            TaskAssigned(
                task_id=task_id,
                title=title,
                assigned_by_email=actor.email,
                recipient_emails=tuple(emails[a] for a in assignees),
            )
        )
        return self._load(task_id)

    def list_tasks(self, actor: Actor, *, project_id: Optional[int] = None) -> list[Task]:
        tasks = list(self._tasks.list_all(project_id=project_id))
        visible = {s.task_id for s in filter_visible(actor, TaskAction.READ, [t.snapshot() for t in tasks])}
        return [t for t in tasks if t.task_id in visible]

    def get_task(self, actor: Actor, task_id: int) -> Task:
        task = self._load(task_id)
        authorize(actor, task.snapshot(), TaskAction.READ)
        return task

    def update_status(self, actor: Actor, task_id: int, status: str | TaskStatus) -> Task:
        status = require_choice(status, TaskStatus, "Status")
        task = self._load(task_id)
        snapshot = task.snapshot()
        authorize(actor, snapshot, TaskAction.UPDATE_STATUS)

        if status == task.status:
            return task
        if not self._tasks.update_status(snapshot, status):
            raise ConflictError(_STALE)
        logger.info("Task %s status %s -> %s by %s", task.task_id, task.status.value, status.value, actor.user_id)

        project = self._projects.get_by_id(task.project_id)
        managers = [
            p.email for p in (project.participants if project else ()) if p.role_in_project == ProjectRole.PROJECT_MANAGER
        ]
        if managers:
            self._events.publish(
                TaskStatusChanged(
                    task_id=task.task_id,
                    title=task.title,
                    status=status.value,
                    changed_by_email=actor.email,
                    recipient_emails=tuple(managers),
                )
            )
        if status == TaskStatus.COMPLETED and task.assigned_by is not None:
            assigner = self._users.get_by_id(task.assigned_by)
            if assigner:
                self._events.publish(
                    TaskCompleted(
                        task_id=task.task_id,
                        title=task.title,
                        completed_by_email=actor.email,
                        recipient_email=assigner.email,
                    )
                )
        return self._load(task.task_id)

    def toggle_checklist_item(self, actor: Actor, task_id: int, item_id: int, is_completed) -> Task:
        if not isinstance(is_completed, bool):
            raise ValidationError("is_completed must be true or false")
        task = self._load(task_id)
        item = task.checklist_item(int(item_id))
        if not item:
            raise NotFoundError("Checklist item not found")
        snapshot = task.snapshot()
        authorize(actor, snapshot, TaskAction.UPDATE_CHECKLIST)

        ok = self._tasks.set_checklist_item(
            snapshot,
            item.item_id,
            is_completed=is_completed,
            completed_by=actor.user_id if is_completed else None,
            completed_at=self._clock() if is_completed else None,
        )
        if not ok:
            raise ConflictError(_STALE)
        return self._load(task.task_id)

    def delete_task(self, actor: Actor, task_id: int) -> None:
        task = self._load(task_id)
        snapshot = task.snapshot()
        authorize(actor, snapshot, TaskAction.DELETE)
        if not self._tasks.delete(snapshot):
            raise ConflictError(_STALE)
        logger.info("Task %s deleted by %s", task.task_id, actor.user_id)

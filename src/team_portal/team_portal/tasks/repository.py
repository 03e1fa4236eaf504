from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import TaskPriority, TaskStatus
from ..policy.model import TaskSnapshot
from .model import Task


class TaskRepository(Protocol):
    """Mutations take the snapshot that was authorized and return False when
    the stored version no longer matches it."""

    def get_by_id(self, task_id: int) -> Optional[Task]:
        raise NotImplementedError

    def list_all(self, *, project_id: Optional[int] = None) -> Sequence[Task]:
        raise NotImplementedError

    def create(
        self,
        *,
        project_id: int,
        title: str,
        description: str,
        priority: TaskPriority,
        due_date: Optional[date],
        created_by: int,
        assignee_ids: Sequence[int],
        checklist: Sequence[str],
    ) -> int:
        raise NotImplementedError

    def update_status(self, snapshot: TaskSnapshot, status: TaskStatus) -> bool:
        raise NotImplementedError

    def set_checklist_item(
        self,
        snapshot: TaskSnapshot,
        item_id: int,
        *,
        is_completed: bool,
        completed_by: Optional[int],
        completed_at: Optional[datetime],
    ) -> bool:
        raise NotImplementedError

    def delete(self, snapshot: TaskSnapshot) -> bool:
        raise NotImplementedError

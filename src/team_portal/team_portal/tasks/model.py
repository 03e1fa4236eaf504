from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import TaskPriority, TaskStatus
from ..policy.model import TaskSnapshot


@dataclass(frozen=True)
class ChecklistItem:
    item_id: int
    item: str
    is_completed: bool = False
    completed_by: Optional[int] = None
    completed_at: Optional[datetime] = None


@dataclass(frozen=True)
class Task:
    task_id: int
    project_id: int
    title: str
    description: str
    priority: TaskPriority
    status: TaskStatus
    due_date: Optional[date] = None
    progress: int = 0
    created_by: Optional[int] = None
    assigned_by: Optional[int] = None
    assignee_ids: tuple[int, ...] = ()
    checklist: tuple[ChecklistItem, ...] = ()
    version: int = 0

    def snapshot(self) -> TaskSnapshot:
        return TaskSnapshot(
            task_id=self.task_id,
            project_id=self.project_id,
            created_by=self.created_by,
            assigned_by=self.assigned_by,
            assignee_ids=frozenset(self.assignee_ids),
            status=self.status,
            version=self.version,
        )

    def checklist_item(self, item_id: int) -> Optional[ChecklistItem]:
        for item in self.checklist:
            if item.item_id == item_id:
                return item
        return None

    def to_dict(self) -> dict:
        return {
            "task_id": self.task_id,
            "project_id": self.project_id,
            "title": self.title,
            "description": self.description,
            "priority": self.priority.value,
            "status": self.status.value,
            "due_date": self.due_date.isoformat() if self.due_date else None,
            "progress": self.progress,
            "created_by": self.created_by,
            "assigned_by": self.assigned_by,
            "assignee_ids": list(self.assignee_ids),
            "checklist": [
                {
                    "item_id": c.item_id,
                    "item": c.item,
                    "is_completed": c.is_completed,
                    "completed_by": c.completed_by,
                    "completed_at": c.completed_at.isoformat() if c.completed_at else None,
                }
                for c in self.checklist
            ],
        }


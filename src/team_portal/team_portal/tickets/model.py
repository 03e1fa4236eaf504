from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import FrozenSet, Optional

from ..core.enums import TaskPriority, TicketStatus
from ..policy.model import TicketSnapshot


@dataclass(frozen=True)
class Ticket:
    ticket_id: int
    task_id: int
    issue_title: str
    description: str = ""
    assigned_to: Optional[int] = None
    priority: TaskPriority = TaskPriority.MEDIUM
    status: TicketStatus = TicketStatus.OPEN
    tag: str = ""
    estimated_hours: Optional[Decimal] = None
    created_at: Optional[datetime] = None
    version: int = 0

    def snapshot(self, task_assignee_ids: FrozenSet[int]) -> TicketSnapshot:
        return TicketSnapshot(
            ticket_id=self.ticket_id,
            task_id=self.task_id,
            assigned_to=self.assigned_to,
            task_assignee_ids=frozenset(task_assignee_ids),
            status=self.status,
            version=self.version,
        )

    def to_dict(self) -> dict:
        return {
            "ticket_id": self.ticket_id,
            "task_id": self.task_id,
            "issue_title": self.issue_title,
            "description": self.description,
            "assigned_to": self.assigned_to,
            "priority": self.priority.value,
            "status": self.status.value,
            "tag": self.tag,
            "estimated_hours": float(self.estimated_hours) if self.estimated_hours is not None else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

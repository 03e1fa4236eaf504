from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.constants import DEFAULT_MAX_PAID_LEAVES_PER_MONTH
from ..core.enums import ApprovalStatus, LeaveType
from ..policy.model import LeaveRuleSnapshot, LeaveSnapshot


@dataclass(frozen=True)
class Leave:
    leave_id: int
    user_id: int
    leave_type: LeaveType
    start_date: date
    end_date: date
    reason: str = ""
    status: ApprovalStatus = ApprovalStatus.PENDING
    decided_by: Optional[int] = None
    decided_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    version: int = 0

    @property
    def days(self) -> int:
        return (self.end_date - self.start_date).days + 1

    def snapshot(self) -> LeaveSnapshot:
        return LeaveSnapshot(leave_id=self.leave_id, user_id=self.user_id, status=self.status, version=self.version)

    def to_dict(self) -> dict:
        return {
            "leave_id": self.leave_id,
            "user_id": self.user_id,
            "leave_type": self.leave_type.value,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "days": self.days,
            "reason": self.reason,
            "status": self.status.value,
            "decision": {
                "by": self.decided_by,
                "at": self.decided_at.isoformat() if self.decided_at else None,
            },
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass(frozen=True)
class LeaveRule:
    """Company-wide leave policy (a single row)."""

    max_paid_leaves_per_month: int = DEFAULT_MAX_PAID_LEAVES_PER_MONTH
    notes: str = ""
    updated_by: Optional[int] = None
    updated_at: Optional[datetime] = None
    version: int = 0

    def snapshot(self) -> LeaveRuleSnapshot:
        return LeaveRuleSnapshot(max_paid_leaves_per_month=self.max_paid_leaves_per_month, version=self.version)

    def to_dict(self) -> dict:
        return {
            "max_paid_leaves_per_month": self.max_paid_leaves_per_month,
            "notes": self.notes,
            "updated_by": self.updated_by,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import ApprovalStatus, LeaveType
from ..policy.model import LeaveRuleSnapshot, LeaveSnapshot
from .model import Leave, LeaveRule


class LeaveRepository(Protocol):
    def get_by_id(self, leave_id: int) -> Optional[Leave]:
        raise NotImplementedError

    def list_all(self, *, user_id: Optional[int] = None, status: Optional[ApprovalStatus] = None) -> Sequence[Leave]:
        raise NotImplementedError

    def count_approved(self, user_id: int, leave_type: LeaveType, start: date, end: date) -> int:
        """Approved leaves of ``leave_type`` whose start date falls in [start, end]."""

        raise NotImplementedError

    def create(
        self,
        *,
        user_id: int,
        leave_type: LeaveType,
        start_date: date,
        end_date: date,
        reason: str,
    ) -> int:
        raise NotImplementedError

    def set_status(
        self, snapshot: LeaveSnapshot, status: ApprovalStatus, *, decided_by: int, decided_at: datetime
    ) -> bool:
        raise NotImplementedError


class LeaveRuleRepository(Protocol):
    def get(self) -> LeaveRule:
        raise NotImplementedError

    def save(self, snapshot: LeaveRuleSnapshot, rule: LeaveRule) -> bool:
        """Store ``rule`` if the stored row is still at ``snapshot.version``."""
        raise NotImplementedError

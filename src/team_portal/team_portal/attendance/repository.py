from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import ApprovalStatus, PresenceStatus, WorkMode
from ..policy.model import AttendanceSnapshot
from .model import Attendance


class AttendanceRepository(Protocol):
    def get_by_id(self, attendance_id: int) -> Optional[Attendance]:
        raise NotImplementedError

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[Attendance]:
        raise NotImplementedError

    def list_recent(self, *, user_id: Optional[int] = None, limit: int = 500) -> Sequence[Attendance]:
        raise NotImplementedError

    def list_between(
        self,
        start: date,
        end: date,
        *,
        user_id: Optional[int] = None,
        approval_status: Optional[ApprovalStatus] = None,
    ) -> Sequence[Attendance]:
        raise NotImplementedError

    def create(
        self,
        *,
        user_id: int,
        work_date: date,
        marked_at: datetime,
        work_mode: WorkMode,
        status: PresenceStatus,
    ) -> int:
        raise NotImplementedError

    def set_approval(self, snapshot: AttendanceSnapshot, status: ApprovalStatus, approved_by: int) -> bool:
        raise NotImplementedError

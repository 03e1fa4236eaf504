from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import ApprovalStatus, PresenceStatus, WorkMode
from ..policy.model import AttendanceSnapshot


@dataclass(frozen=True)
class Attendance:
    attendance_id: int
    user_id: int
    work_date: date
    marked_at: datetime
    work_mode: WorkMode
    status: PresenceStatus = PresenceStatus.PRESENT
    approval_status: ApprovalStatus = ApprovalStatus.PENDING
    approved_by: Optional[int] = None
    version: int = 0

    def snapshot(self) -> AttendanceSnapshot:
        return AttendanceSnapshot(
            attendance_id=self.attendance_id,
            user_id=self.user_id,
            approval_status=self.approval_status,
            version=self.version,
        )

    def to_dict(self) -> dict:
        return {
            "attendance_id": self.attendance_id,
            "user_id": self.user_id,
            "date": self.work_date.isoformat(),
            "marked_at": self.marked_at.isoformat(),
            "work_mode": self.work_mode.value,
            "status": self.status.value,
            "approval_status": self.approval_status.value,
            "approved_by": self.approved_by,
        }


@dataclass(frozen=True)
class DailyAttendance:
    """One row of the attendance chart: counts of present/wfh/office marks on a day."""

    day: date
    present: int = 0
    wfh: int = 0
    office: int = 0

    def to_dict(self) -> dict:
        return {"date": self.day.isoformat(), "present": self.present, "wfh": self.wfh, "office": self.office}

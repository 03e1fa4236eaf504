from __future__ import annotations

import logging
from collections import Counter
from datetime import date, datetime
from typing import Optional

from ..common.datetime_utils import date_range, resolve_report_range
from ..common.validators import require_choice
from ..core.constants import DEFAULT_LIST_LIMIT, DEFAULT_REPORT_DAYS
from ..core.enums import ApprovalStatus, PresenceStatus, WorkMode
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..events.model import AttendanceDecided, AttendanceMarked
from ..policy.model import Actor, AttendanceAction, AttendanceSnapshot
from ..policy.rules import authorize, filter_visible
from ..users.repository import UserRepository
from .model import Attendance, DailyAttendance
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


class AttendanceService:
    def __init__(self, attendance: AttendanceRepository, users: UserRepository, events):
        self._attendance = attendance
        self._users = users
        self._events = events

    def _load(self, attendance_id: int) -> Attendance:
        record = self._attendance.get_by_id(int(attendance_id))
        if not record:
            raise NotFoundError("Attendance record not found")
        return record

    def mark(
        self,
        actor: Actor,
        *,
        work_mode: str | WorkMode,
        status: Optional[str] = None,
        user_id: Optional[int] = None,
        now: datetime | None = None,
    ) -> Attendance:
        if not work_mode:
            raise ValidationError("Work mode is required (office or wfh)")
        work_mode = require_choice(work_mode, WorkMode, "Work mode")
        presence = require_choice(status or PresenceStatus.PRESENT, PresenceStatus, "Status")

        target = actor.user_id if user_id is None else int(user_id)
        authorize(actor, AttendanceSnapshot(attendance_id=None, user_id=target), AttendanceAction.MARK)

        now = now or datetime.now()
        today = now.date()
        if self._attendance.get_for_user_and_date(target, today):
            raise ValidationError("Attendance already marked for today")

        attendance_id = self._attendance.create(
            user_id=target, work_date=today, marked_at=now, work_mode=work_mode, status=presence
        )
        logger.info("Attendance %s marked by %s (%s)", attendance_id, target, work_mode.value)

        user = self._users.get_by_id(target)
        self._events.publish(
            AttendanceMarked(
                attendance_id=attendance_id,
                user_name=user.name if user else actor.email,
                user_email=user.email if user else actor.email,
                work_date=today,
                work_mode=work_mode.value,
            )
        )
        return self._load(attendance_id)

    def decide(self, actor: Actor, attendance_id: int, *, approve: bool) -> Attendance:
        record = self._load(attendance_id)
        snapshot = record.snapshot()
        authorize(actor, snapshot, AttendanceAction.APPROVE if approve else AttendanceAction.REJECT)

        status = ApprovalStatus.APPROVED if approve else ApprovalStatus.REJECTED
        if not self._attendance.set_approval(snapshot, status, actor.user_id):
            raise ConflictError("Attendance record was changed by someone else, reload and try again")
        logger.info("Attendance %s %s by %s", record.attendance_id, status.value, actor.user_id)

        subject = self._users.get_by_id(record.user_id)
        if subject:
            self._events.publish(
                AttendanceDecided(
                    attendance_id=record.attendance_id,
                    user_email=subject.email,
                    work_date=record.work_date,
                    approval_status=status.value,
                    decided_by_email=actor.email,
                )
            )
        return self._load(record.attendance_id)

    def history(self, actor: Actor, *, user_id: Optional[int] = None, limit: int = DEFAULT_LIST_LIMIT) -> list[Attendance]:
        """Raw records the actor may read, newest first."""
        if user_id is None and not actor.is_admin:
            user_id = actor.user_id
        records = list(self._attendance.list_recent(user_id=user_id, limit=limit))
        visible = {s.attendance_id for s in filter_visible(actor, AttendanceAction.READ, [r.snapshot() for r in records])}
        return [r for r in records if r.attendance_id in visible]

    def report(
        self,
        actor: Actor,
        *,
        days: Optional[int] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
        user_id: Optional[int] = None,
        approval_status: Optional[str] = None,
        fill_missing: bool = False,
        today: Optional[date] = None,
    ) -> list[DailyAttendance]:
        """Daily present/wfh/office counts over a date range.

        Rows the actor may not see under the report rule are dropped before
        counting, so a member asking for someone else's report gets zeros.
        """
        start, end = resolve_report_range(
            today=today or date.today(), days=days, start=start, end=end, default_days=DEFAULT_REPORT_DAYS
        )
        status = require_choice(approval_status, ApprovalStatus, "Status") if approval_status else None
        if user_id is None and not (actor.is_admin or actor.is_manager):
            user_id = actor.user_id

        records = list(self._attendance.list_between(start, end, user_id=user_id, approval_status=status))
        visible_ids = {
            s.attendance_id for s in filter_visible(actor, AttendanceAction.REPORT, [r.snapshot() for r in records])
        }

        present: Counter = Counter()
        wfh: Counter = Counter()
        office: Counter = Counter()
        marked_days: set[date] = set()
        for r in records:
            if r.attendance_id not in visible_ids:
                continue
            marked_days.add(r.work_date)
            if r.status != PresenceStatus.PRESENT:
                continue
            present[r.work_date] += 1
            if r.work_mode == WorkMode.WFH:
                wfh[r.work_date] += 1
            else:
                office[r.work_date] += 1

        days_out = list(date_range(start, end)) if fill_missing else sorted(marked_days)
        return [DailyAttendance(day=d, present=present[d], wfh=wfh[d], office=office[d]) for d in days_out]

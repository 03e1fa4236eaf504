from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import month_start, parse_iso_date
from ..common.validators import require_choice
from ..core.enums import ApprovalStatus, LeaveType
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..events.model import LeaveApplied, LeaveDecided
from ..policy.model import Actor, LeaveAction, LeaveRuleAction, LeaveSnapshot
from ..policy.rules import authorize, filter_visible
from ..users.repository import UserRepository
from .model import Leave, LeaveRule
from .repository import LeaveRepository, LeaveRuleRepository

logger = logging.getLogger(__name__)


class LeaveService:
    """Use case: apply for leave, approve/reject it, manage the paid-leave rule."""

    def __init__(self, leaves: LeaveRepository, rules: LeaveRuleRepository, users: UserRepository, events):
        self._leaves = leaves
        self._rules = rules
        self._users = users
        self._events = events

    def _load(self, leave_id: int) -> Leave:
        leave = self._leaves.get_by_id(int(leave_id))
        if not leave:
            raise NotFoundError("Leave request not found")
        return leave

    @staticmethod
    def _visible(actor: Actor, action: LeaveAction, leaves) -> list[Leave]:
        leaves = list(leaves)
        allowed = {s.leave_id for s in filter_visible(actor, action, [lv.snapshot() for lv in leaves])}
        return [lv for lv in leaves if lv.leave_id in allowed]

    def apply(
        self,
        actor: Actor,
        *,
        leave_type: str,
        start_date: str,
        end_date: str,
        reason: str = "",
        now: datetime | None = None,
    ) -> Leave:
        authorize(actor, LeaveSnapshot(leave_id=None, user_id=actor.user_id), LeaveAction.APPLY)

        if not leave_type or not start_date or not end_date:
            raise ValidationError("Missing required fields")
        leave_type = require_choice(leave_type, LeaveType, "Leave type")
        start = parse_iso_date(start_date)
        end = parse_iso_date(end_date)
        if end < start:
            raise ValidationError("End date must be on or after start date")

        if leave_type == LeaveType.PAID:
            today = (now or datetime.now()).date()
            rule = self._rules.get()
            used = self._leaves.count_approved(actor.user_id, LeaveType.PAID, month_start(today), today)
            if used >= rule.max_paid_leaves_per_month:
                raise ValidationError("Paid leave quota exceeded")

        leave_id = self._leaves.create(
            user_id=actor.user_id,
            leave_type=leave_type,
            start_date=start,
            end_date=end,
            reason=(reason or "").strip(),
        )
        logger.info("Leave %s (%s %s..%s) applied by %s", leave_id, leave_type.value, start, end, actor.user_id)

        user = self._users.get_by_id(actor.user_id)
        self._events.publish(
            LeaveApplied(
                leave_id=leave_id,
                user_name=user.name if user else actor.email,
                user_email=actor.email,
                leave_type=leave_type.value,
                start_date=start,
                end_date=end,
                reason=(reason or "").strip() or None,
            )
        )
        return self._load(leave_id)

    def decide(self, actor: Actor, leave_id: int, *, approve: bool, now: datetime | None = None) -> Leave:
        leave = self._load(leave_id)
        snapshot = leave.snapshot()
        authorize(actor, snapshot, LeaveAction.APPROVE if approve else LeaveAction.REJECT)

        status = ApprovalStatus.APPROVED if approve else ApprovalStatus.REJECTED
        ok = self._leaves.set_status(snapshot, status, decided_by=actor.user_id, decided_at=now or datetime.now())
        if not ok:
            raise ConflictError("Leave request was changed by someone else, reload and try again")
        logger.info("Leave %s %s by %s", leave.leave_id, status.value, actor.user_id)

        applicant = self._users.get_by_id(leave.user_id)
        if applicant:
            self._events.publish(
                LeaveDecided(
                    leave_id=leave.leave_id,
                    user_email=applicant.email,
                    status=status.value,
                    start_date=leave.start_date,
                    end_date=leave.end_date,
                    decided_by_email=actor.email,
                )
            )
        return self._load(leave.leave_id)

    def list_leaves(self, actor: Actor, *, report: bool = False) -> list[Leave]:
        """Own leave history, or (``report=True``) everything the report rule shows."""
        if report:
            return self._visible(actor, LeaveAction.REPORT, self._leaves.list_all())
        return self._visible(actor, LeaveAction.READ, self._leaves.list_all(user_id=actor.user_id))

    def list_pending(self, actor: Actor) -> list[Leave]:
        """Pending requests the actor could approve right now."""
        return self._visible(actor, LeaveAction.APPROVE, self._leaves.list_all(status=ApprovalStatus.PENDING))

    def get_rule(self, actor: Actor) -> LeaveRule:
        rule = self._rules.get()
        authorize(actor, rule.snapshot(), LeaveRuleAction.READ)
        return rule

    def update_rule(
        self,
        actor: Actor,
        *,
        max_paid_leaves_per_month: Optional[int] = None,
        notes: Optional[str] = None,
        now: datetime | None = None,
    ) -> LeaveRule:
        rule = self._rules.get()
        snapshot = rule.snapshot()
        authorize(actor, snapshot, LeaveRuleAction.UPDATE)

        if max_paid_leaves_per_month is not None:
            try:
                max_paid_leaves_per_month = int(max_paid_leaves_per_month)
            except (TypeError, ValueError):
                raise ValidationError("max_paid_leaves_per_month must be an integer")
            if max_paid_leaves_per_month < 0:
                raise ValidationError("max_paid_leaves_per_month cannot be negative")

        updated = replace(
            rule,
            max_paid_leaves_per_month=(
                rule.max_paid_leaves_per_month if max_paid_leaves_per_month is None else max_paid_leaves_per_month
            ),
            notes=rule.notes if notes is None else str(notes),
            updated_by=actor.user_id,
            updated_at=now or datetime.now(),
            version=rule.version + 1,
        )
        if not self._rules.save(snapshot, updated):
            raise ConflictError("Leave rule was changed by someone else, reload and try again")
        logger.info("Leave rule updated by %s: max paid/month=%s", actor.user_id, updated.max_paid_leaves_per_month)
        return updated

from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime

import pytest

from team_portal.core.enums import ApprovalStatus, LeaveType
from team_portal.core.exceptions import AuthorizationError, ConflictError, ValidationError
from team_portal.events.model import LeaveApplied, LeaveDecided
from team_portal.leave.model import Leave, LeaveRule
from team_portal.leave.service import LeaveService
from team_portal.policy.model import DenyReason


class InMemoryLeaves:
    def __init__(self):
        self._next_id = 1
        self.leaves: dict[int, Leave] = {}

    def add(self, user_id, start, end=None, *, leave_type=LeaveType.PAID, status=ApprovalStatus.PENDING):
        lid = self._next_id
        self._next_id += 1
        self.leaves[lid] = Leave(
            leave_id=lid, user_id=user_id, leave_type=leave_type, start_date=start, end_date=end or start, status=status
        )
        return self.leaves[lid]

    def get_by_id(self, leave_id):
        return self.leaves.get(leave_id)

    def list_all(self, *, user_id=None, status=None):
        return [
            lv
            for lv in self.leaves.values()
            if (user_id is None or lv.user_id == user_id) and (status is None or lv.status == status)
        ]

    def count_approved(self, user_id, leave_type, start, end):
        return sum(
            1
            for lv in self.leaves.values()
            if lv.user_id == user_id
            and lv.leave_type == leave_type
            and lv.status == ApprovalStatus.APPROVED
            and start <= lv.start_date <= end
        )

    def create(self, *, user_id, leave_type, start_date, end_date, reason):
        leave = self.add(user_id, start_date, end_date, leave_type=leave_type)
        self.leaves[leave.leave_id] = replace(leave, reason=reason)
        return leave.leave_id

    def set_status(self, snapshot, status, *, decided_by, decided_at):
        current = self.leaves.get(snapshot.leave_id)
        if not current or current.version != snapshot.version:
            return False
        self.leaves[current.leave_id] = replace(
            current, status=status, decided_by=decided_by, decided_at=decided_at, version=current.version + 1
        )
        return True


class InMemoryLeaveRule:
    def __init__(self, rule=None):
        self.rule = rule or LeaveRule()

    def get(self):
        return self.rule

    def save(self, snapshot, rule):
        if snapshot.version != self.rule.version:
            return False
        self.rule = rule
        return True


NOW = datetime(2026, 3, 20, 10, 0)


@pytest.fixture()
def leaves():
    return InMemoryLeaves()


@pytest.fixture()
def rules():
    return InMemoryLeaveRule()


@pytest.fixture()
def service(leaves, rules, users_repo, events):
    return LeaveService(leaves, rules, users_repo, events)


def test_member_applies_for_leave(service, member, events):
    leave = service.apply(
        member, leave_type="sick", start_date="2026-03-23", end_date="2026-03-24", reason=" flu ", now=NOW
    )

    assert leave.user_id == member.user_id
    assert leave.status == ApprovalStatus.PENDING
    assert leave.days == 2
    assert leave.reason == "flu"
    [event] = events.of_type(LeaveApplied)
    assert event.user_name == "Member"
    assert event.reason == "flu"


def test_admin_cannot_apply(service, admin, leaves):
    with pytest.raises(AuthorizationError) as exc:
        service.apply(admin, leave_type="paid", start_date="2026-03-23", end_date="2026-03-23", now=NOW)
    assert exc.value.reason == DenyReason.INSUFFICIENT_ROLE
    assert leaves.leaves == {}


@pytest.mark.parametrize(
    "kwargs",
    [
        {"leave_type": "", "start_date": "2026-03-23", "end_date": "2026-03-23"},
        {"leave_type": "paid", "start_date": "", "end_date": "2026-03-23"},
        {"leave_type": "holiday", "start_date": "2026-03-23", "end_date": "2026-03-23"},
        {"leave_type": "paid", "start_date": "23/03/2026", "end_date": "2026-03-23"},
        {"leave_type": "paid", "start_date": "2026-03-24", "end_date": "2026-03-23"},
    ],
)
def test_apply_validation(service, member, kwargs):
    with pytest.raises(ValidationError):
        service.apply(member, now=NOW, **kwargs)


def test_paid_quota_counts_approved_leaves_this_month(service, leaves, member):
    leaves.add(member.user_id, date(2026, 3, 2), status=ApprovalStatus.APPROVED)
    leaves.add(member.user_id, date(2026, 2, 10), status=ApprovalStatus.APPROVED)
    leaves.add(member.user_id, date(2026, 3, 5), status=ApprovalStatus.REJECTED)

    service.apply(member, leave_type="paid", start_date="2026-03-25", end_date="2026-03-25", now=NOW)

    leaves.add(member.user_id, date(2026, 3, 9), status=ApprovalStatus.APPROVED)
    with pytest.raises(ValidationError, match="quota"):
        service.apply(member, leave_type="paid", start_date="2026-03-26", end_date="2026-03-26", now=NOW)

    # Other leave types are not capped.
    service.apply(member, leave_type="casual", start_date="2026-03-26", end_date="2026-03-26", now=NOW)


def test_manager_approves_and_applicant_is_told(service, leaves, manager, events):
    pending = leaves.add(3, date(2026, 3, 23))

    leave = service.decide(manager, pending.leave_id, approve=True, now=NOW)

    assert leave.status == ApprovalStatus.APPROVED
    assert leave.decided_by == manager.user_id
    assert leave.decided_at == NOW
    [event] = events.of_type(LeaveDecided)
    assert event.user_email == "member@example.com"
    assert event.status == "approved"


def test_manager_cannot_decide_own_leave(service, leaves, manager):
    own = leaves.add(manager.user_id, date(2026, 3, 23))
    with pytest.raises(AuthorizationError) as exc:
        service.decide(manager, own.leave_id, approve=True)
    assert exc.value.reason == DenyReason.SELF_ACTION_NOT_ALLOWED


def test_decided_leave_is_closed(service, leaves, admin):
    done = leaves.add(3, date(2026, 3, 23), status=ApprovalStatus.APPROVED)
    with pytest.raises(AuthorizationError) as exc:
        service.decide(admin, done.leave_id, approve=False)
    assert exc.value.reason == DenyReason.RESOURCE_CLOSED


def test_decide_conflict(service, leaves, admin):
    pending = leaves.add(3, date(2026, 3, 23))
    original_get = leaves.get_by_id

    def racing_get(leave_id):
        current = original_get(leave_id)
        leaves.leaves[leave_id] = replace(current, version=current.version + 1)
        return current

    leaves.get_by_id = racing_get
    with pytest.raises(ConflictError):
        service.decide(admin, pending.leave_id, approve=True)


def test_list_leaves_own_vs_report(service, leaves, admin, manager, member):
    leaves.add(3, date(2026, 3, 2))
    leaves.add(4, date(2026, 3, 3))
    leaves.add(2, date(2026, 3, 4))

    assert {lv.user_id for lv in service.list_leaves(member)} == {3}
    assert {lv.user_id for lv in service.list_leaves(member, report=True)} == {3}
    assert {lv.user_id for lv in service.list_leaves(manager, report=True)} == {2, 3, 4}
    assert service.list_leaves(admin) == []


def test_pending_queue_excludes_own_and_decided(service, leaves, manager, member):
    leaves.add(3, date(2026, 3, 2))
    leaves.add(2, date(2026, 3, 3))
    leaves.add(4, date(2026, 3, 4), status=ApprovalStatus.REJECTED)

    assert [lv.user_id for lv in service.list_pending(manager)] == [3]
    assert service.list_pending(member) == []


def test_everyone_reads_rule_only_admin_updates(service, rules, admin, manager, member):
    assert service.get_rule(member).max_paid_leaves_per_month == 2

    with pytest.raises(AuthorizationError):
        service.update_rule(manager, max_paid_leaves_per_month=5)

    updated = service.update_rule(admin, max_paid_leaves_per_month="3", notes="Q2 policy", now=NOW)
    assert updated.max_paid_leaves_per_month == 3
    assert updated.updated_by == admin.user_id
    assert rules.rule == updated

    notes_only = service.update_rule(admin, notes="unchanged cap", now=NOW)
    assert notes_only.max_paid_leaves_per_month == 3


@pytest.mark.parametrize("value", [-1, "many"])
def test_rule_update_validation(service, admin, value):
    with pytest.raises(ValidationError):
        service.update_rule(admin, max_paid_leaves_per_month=value)


def test_rule_update_is_versioned(service, rules, users_repo, events, admin):
    first = service.update_rule(admin, max_paid_leaves_per_month=4, now=NOW)
    assert first.version == 1

    class StaleRead(InMemoryLeaveRule):
        def get(self):
            return replace(self.rule, version=0)

    stale = StaleRead(rules.rule)
    with pytest.raises(ConflictError):
        LeaveService(InMemoryLeaves(), stale, users_repo, events).update_rule(admin, max_paid_leaves_per_month=1, now=NOW)
    assert stale.rule.max_paid_leaves_per_month == 4

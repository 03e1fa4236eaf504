from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from ..core.enums import ApprovalStatus, LeaveType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from ..policy.model import LeaveRuleSnapshot, LeaveSnapshot
from .model import Leave, LeaveRule
from .repository import LeaveRepository, LeaveRuleRepository

_COLUMNS = (
    "leave_id, user_id, leave_type, start_date, end_date, reason, status, decided_by, decided_at, created_at, version"
)

_RULE_ID = 1


def _row_to_leave(row: dict) -> Leave:
    return Leave(
        leave_id=int(row["leave_id"]),
        user_id=int(row["user_id"]),
        leave_type=LeaveType(row["leave_type"]),
        start_date=row["start_date"],
        end_date=row["end_date"],
        reason=row.get("reason") or "",
        status=ApprovalStatus(row["status"]),
        decided_by=row.get("decided_by"),
        decided_at=row.get("decided_at"),
        created_at=row.get("created_at"),
        version=int(row.get("version") or 0),
    )


class MySQLLeaveRepository(LeaveRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, leave_id: int) -> Optional[Leave]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM leaves WHERE leave_id=%s", (int(leave_id),))
            row = fetchone(cur)
            return _row_to_leave(row) if row else None

    def list_all(self, *, user_id: Optional[int] = None, status: Optional[ApprovalStatus] = None) -> Sequence[Leave]:
        where: list[str] = []
        params: list = []
        if user_id is not None:
            where.append("user_id=%s")
            params.append(int(user_id))
        if status is not None:
            where.append("status=%s")
            params.append(status.value)
        sql = f"SELECT {_COLUMNS} FROM leaves"
        if where:
            sql += " WHERE " + " AND ".join(where)
        sql += " ORDER BY created_at DESC, leave_id DESC"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_row_to_leave(r) for r in fetchall(cur)]

    def count_approved(self, user_id: int, leave_type: LeaveType, start: date, end: date) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COUNT(*) AS cnt FROM leaves
                WHERE user_id=%s AND leave_type=%s AND status='approved' AND start_date BETWEEN %s AND %s
                """,
                (int(user_id), leave_type.value, start, end),
            )
            row = fetchone(cur)
            return int(row["cnt"]) if row else 0

    def create(
        self,
        *,
        user_id: int,
        leave_type: LeaveType,
        start_date: date,
        end_date: date,
        reason: str,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO leaves (user_id, leave_type, start_date, end_date, reason)
                VALUES (%s, %s, %s, %s, %s)
                """,
                (int(user_id), leave_type.value, start_date, end_date, reason),
            )
            return int(cur.lastrowid)

    def set_status(
        self, snapshot: LeaveSnapshot, status: ApprovalStatus, *, decided_by: int, decided_at: datetime
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leaves SET status=%s, decided_by=%s, decided_at=%s, version=version+1
                WHERE leave_id=%s AND version=%s
                """,
                (status.value, int(decided_by), decided_at, int(snapshot.leave_id), int(snapshot.version)),
            )
            return cur.rowcount == 1


class MySQLLeaveRuleRepository(LeaveRuleRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self) -> LeaveRule:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT max_paid_leaves_per_month, notes, updated_by, updated_at, version"
                " FROM leave_rule WHERE rule_id=%s",
                (_RULE_ID,),
            )
            row = fetchone(cur)
            if not row:
                return LeaveRule()
            return LeaveRule(
                max_paid_leaves_per_month=int(row["max_paid_leaves_per_month"]),
                notes=row.get("notes") or "",
                updated_by=row.get("updated_by"),
                updated_at=row.get("updated_at"),
                version=int(row.get("version") or 0),
            )

    def save(self, snapshot: LeaveRuleSnapshot, rule: LeaveRule) -> bool:
        values = (int(rule.max_paid_leaves_per_month), rule.notes, rule.updated_by, rule.updated_at)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_rule
                SET max_paid_leaves_per_month=%s, notes=%s, updated_by=%s, updated_at=%s, version=version+1
                WHERE rule_id=%s AND version=%s
                """,
                (*values, _RULE_ID, int(snapshot.version)),
            )
            if cur.rowcount == 1:
                return True
            # first save on a database that was never seeded
            cur.execute(
                """
                INSERT IGNORE INTO leave_rule
                    (rule_id, max_paid_leaves_per_month, notes, updated_by, updated_at, version)
                VALUES (%s, %s, %s, %s, %s, %s)
                """,
                (_RULE_ID, *values, int(snapshot.version) + 1),
            )
            return cur.rowcount == 1

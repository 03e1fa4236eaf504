from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

import mysql.connector

from ..core.enums import ApprovalStatus, PresenceStatus, WorkMode
from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from ..policy.model import AttendanceSnapshot
from .model import Attendance
from .repository import AttendanceRepository

_COLUMNS = "attendance_id, user_id, work_date, marked_at, status, work_mode, approval_status, approved_by, version"


def _row_to_attendance(row: dict) -> Attendance:
    return Attendance(
        attendance_id=int(row["attendance_id"]),
        user_id=int(row["user_id"]),
        work_date=row["work_date"],
        marked_at=row["marked_at"],
        work_mode=WorkMode(row["work_mode"]),
        status=PresenceStatus(row["status"]),
        approval_status=ApprovalStatus(row["approval_status"]),
        approved_by=row.get("approved_by"),
        version=int(row.get("version") or 0),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, attendance_id: int) -> Optional[Attendance]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance WHERE attendance_id=%s", (int(attendance_id),))
            row = fetchone(cur)
            return _row_to_attendance(row) if row else None

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[Attendance]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance WHERE user_id=%s AND work_date=%s",
                (int(user_id), work_date),
            )
            row = fetchone(cur)
            return _row_to_attendance(row) if row else None

    def list_recent(self, *, user_id: Optional[int] = None, limit: int = 500) -> Sequence[Attendance]:
        sql = f"SELECT {_COLUMNS} FROM attendance"
        params: list = []
        if user_id is not None:
            sql += " WHERE user_id=%s"
            params.append(int(user_id))
        sql += " ORDER BY work_date DESC, attendance_id DESC LIMIT %s"
        params.append(int(limit))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_row_to_attendance(r) for r in fetchall(cur)]

    def list_between(
        self,
        start: date,
        end: date,
        *,
        user_id: Optional[int] = None,
        approval_status: Optional[ApprovalStatus] = None,
    ) -> Sequence[Attendance]:
        where = ["work_date BETWEEN %s AND %s"]
        params: list = [start, end]
        if user_id is not None:
            where.append("user_id=%s")
            params.append(int(user_id))
        if approval_status is not None:
            where.append("approval_status=%s")
            params.append(approval_status.value)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance WHERE {' AND '.join(where)} ORDER BY work_date ASC, user_id ASC",
                tuple(params),
            )
            return [_row_to_attendance(r) for r in fetchall(cur)]

    def create(
        self,
        *,
        user_id: int,
        work_date: date,
        marked_at: datetime,
        work_mode: WorkMode,
        status: PresenceStatus,
    ) -> int:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance (user_id, work_date, marked_at, status, work_mode)
                    VALUES (%s, %s, %s, %s, %s)
                    """,
                    (int(user_id), work_date, marked_at, status.value, work_mode.value),
                )
                return int(cur.lastrowid)
        except mysql.connector.IntegrityError:
            # uq_attendance_user_day: a concurrent mark won the race.
            raise ConflictError("Attendance already marked for today")

    def set_approval(self, snapshot: AttendanceSnapshot, status: ApprovalStatus, approved_by: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance SET approval_status=%s, approved_by=%s, version=version+1
                WHERE attendance_id=%s AND version=%s
                """,
                (status.value, int(approved_by), int(snapshot.attendance_id), int(snapshot.version)),
            )
            return cur.rowcount == 1

from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import Optional, Sequence

from ..core.enums import TaskPriority, TicketStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from ..policy.model import TicketSnapshot
from .model import Ticket
from .repository import TicketRepository

_COLUMNS = (
    "ticket_id, task_id, issue_title, description, assigned_to, priority, status, tag, "
    "estimated_hours, created_at, version"
)

# Columns writable through create/update_fields.
_WRITABLE = ("issue_title", "description", "assigned_to", "priority", "status", "tag", "estimated_hours")


def _db_value(value):
    return value.value if isinstance(value, Enum) else value


def _row_to_ticket(row: dict) -> Ticket:
    hours = row.get("estimated_hours")
    return Ticket(
        ticket_id=int(row["ticket_id"]),
        task_id=int(row["task_id"]),
        issue_title=row["issue_title"],
        description=row.get("description") or "",
        assigned_to=row.get("assigned_to"),
        priority=TaskPriority(row["priority"]),
        status=TicketStatus(row["status"]),
        tag=row.get("tag") or "",
        estimated_hours=Decimal(str(hours)) if hours is not None else None,
        created_at=row.get("created_at"),
        version=int(row.get("version") or 0),
    )


class MySQLTicketRepository(TicketRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, task_id: int, ticket_id: int) -> Optional[Ticket]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM tickets WHERE task_id=%s AND ticket_id=%s",
                (int(task_id), int(ticket_id)),
            )
            row = fetchone(cur)
            return _row_to_ticket(row) if row else None

    def list_for_task(self, task_id: int) -> Sequence[Ticket]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM tickets WHERE task_id=%s ORDER BY created_at DESC, ticket_id DESC",
                (int(task_id),),
            )
            return [_row_to_ticket(r) for r in fetchall(cur)]

    def create(self, task_id: int, fields: dict) -> int:
        cols = [c for c in _WRITABLE if c in fields]
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"INSERT INTO tickets (task_id, {', '.join(cols)}) VALUES (%s, {', '.join(['%s'] * len(cols))})",
                (int(task_id), *[_db_value(fields[c]) for c in cols]),
            )
            return int(cur.lastrowid)

    def update_fields(self, snapshot: TicketSnapshot, fields: dict) -> bool:
        unknown = set(fields) - set(_WRITABLE)
        if unknown:
            raise ValueError(f"Unknown ticket columns: {', '.join(sorted(unknown))}")
        assignments = [f"{c}=%s" for c in fields] + ["version=version+1"]
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE tickets SET {', '.join(assignments)} WHERE ticket_id=%s AND version=%s",
                (*[_db_value(v) for v in fields.values()], int(snapshot.ticket_id), int(snapshot.version)),
            )
            return cur.rowcount == 1

    def delete(self, snapshot: TicketSnapshot) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM tickets WHERE ticket_id=%s AND version=%s",
                (int(snapshot.ticket_id), int(snapshot.version)),
            )
            return cur.rowcount == 1

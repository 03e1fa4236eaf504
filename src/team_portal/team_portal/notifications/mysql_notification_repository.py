from __future__ import annotations

from collections import defaultdict
from typing import Optional, Sequence

from ..core.enums import Audience, ReadState
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause
from .model import Notification, Recipient
from .repository import NotificationRepository

_COLUMNS = "notification_id, from_email, data_to, msg_content, source, sent_at"


class MySQLNotificationRepository(NotificationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _hydrate(self, cur, rows: list[dict]) -> list[Notification]:
        if not rows:
            return []
        ids = [int(r["notification_id"]) for r in rows]
        recipients: dict[int, list[Recipient]] = defaultdict(list)
        cur.execute(
            f"SELECT notification_id, email, state FROM notification_recipients WHERE notification_id IN ({in_clause(ids)})",
            tuple(ids),
        )
        for r in fetchall(cur):
            recipients[int(r["notification_id"])].append(Recipient(email=r["email"], state=ReadState(r["state"])))
        return [
            Notification(
                notification_id=int(r["notification_id"]),
                from_email=r["from_email"],
                audience=Audience(r["data_to"]),
                msg_content=r["msg_content"],
                source=r.get("source") or "No Files",
                sent_at=r.get("sent_at"),
                recipients=tuple(recipients[int(r["notification_id"])]),
            )
            for r in rows
        ]

    def get_by_id(self, notification_id: int) -> Optional[Notification]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM notifications WHERE notification_id=%s", (int(notification_id),))
            row = fetchone(cur)
            found = self._hydrate(cur, [row] if row else [])
            return found[0] if found else None

    def list_visible(self, *, addressed_to: Optional[str], limit: int = 500) -> Sequence[Notification]:
        where, params = "", []
        if addressed_to is not None:
            where = """
                WHERE data_to=%s OR notification_id IN (
                    SELECT notification_id FROM notification_recipients WHERE email=%s
                )
            """
            params = [Audience.PUBLIC.value, addressed_to.lower()]
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM notifications {where} ORDER BY sent_at DESC, notification_id DESC LIMIT %s",
                tuple(params + [int(limit)]),
            )
            return self._hydrate(cur, fetchall(cur))

    def count_unread(self, email: str) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT COUNT(*) AS n FROM notification_recipients WHERE email=%s AND state=%s",
                ((email or "").lower(), ReadState.UNREAD.value),
            )
            row = fetchone(cur)
            return int(row["n"]) if row else 0

    def create(
        self,
        *,
        from_email: str,
        audience: Audience,
        msg_content: str,
        source: str,
        recipient_emails: Sequence[str],
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO notifications (from_email, data_to, msg_content, source) VALUES (%s, %s, %s, %s)",
                (from_email, audience.value, msg_content, source),
            )
            notification_id = int(cur.lastrowid)
            for email in recipient_emails:
                cur.execute(
                    "INSERT INTO notification_recipients (notification_id, email, state) VALUES (%s, %s, %s)",
                    (notification_id, email, ReadState.UNREAD.value),
                )
            return notification_id

    def mark_read(self, notification_id: int, email: str) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO notification_recipients (notification_id, email, state) VALUES (%s, %s, %s)
                ON DUPLICATE KEY UPDATE state=VALUES(state)
                """,
                (int(notification_id), email, ReadState.READ.value),
            )

    def delete(self, notification_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM notifications WHERE notification_id=%s", (int(notification_id),))
            return cur.rowcount == 1

from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime
from typing import Optional, Sequence

from ..core.enums import TaskPriority, TaskStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause
from ..policy.model import TaskSnapshot
from .model import ChecklistItem, Task
from .repository import TaskRepository

_COLUMNS = (
    "task_id, project_id, title, description, priority, status, due_date, progress, "
    "created_by, assigned_by, version"
)


class MySQLTaskRepository(TaskRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _hydrate(self, cur, rows: list[dict]) -> list[Task]:
        if not rows:
            return []
        ids = [int(r["task_id"]) for r in rows]
        placeholders = in_clause(ids)

        assignees: dict[int, list[int]] = defaultdict(list)
        cur.execute(
            f"SELECT task_id, user_id FROM task_assignees WHERE task_id IN ({placeholders}) ORDER BY user_id",
            tuple(ids),
        )
        for r in fetchall(cur):
            assignees[int(r["task_id"])].append(int(r["user_id"]))

        checklist: dict[int, list[ChecklistItem]] = defaultdict(list)
        cur.execute(
            f"""
            SELECT item_id, task_id, item, is_completed, completed_by, completed_at
            FROM checklist_items WHERE task_id IN ({placeholders}) ORDER BY item_id
            """,
            tuple(ids),
        )
        for r in fetchall(cur):
            checklist[int(r["task_id"])].append(
                ChecklistItem(
                    item_id=int(r["item_id"]),
                    item=r["item"],
                    is_completed=bool(r["is_completed"]),
                    completed_by=r.get("completed_by"),
                    completed_at=r.get("completed_at"),
                )
            )

        return [
            Task(
                task_id=int(r["task_id"]),
                project_id=int(r["project_id"]),
                title=r["title"],
                description=r.get("description") or "",
                priority=TaskPriority(r["priority"]),
                status=TaskStatus(r["status"]),
                due_date=r.get("due_date"),
                progress=int(r.get("progress") or 0),
                created_by=r.get("created_by"),
                assigned_by=r.get("assigned_by"),
                assignee_ids=tuple(assignees[int(r["task_id"])]),
                checklist=tuple(checklist[int(r["task_id"])]),
                version=int(r.get("version") or 0),
            )
            for r in rows
        ]

    def get_by_id(self, task_id: int) -> Optional[Task]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM tasks WHERE task_id=%s", (int(task_id),))
            row = fetchone(cur)
            tasks = self._hydrate(cur, [row] if row else [])
            return tasks[0] if tasks else None

    def list_all(self, *, project_id: Optional[int] = None) -> Sequence[Task]:
        with db_cursor(self._conn_factory) as (_, cur):
            if project_id is None:
                cur.execute(f"SELECT {_COLUMNS} FROM tasks ORDER BY created_at DESC")
            else:
                cur.execute(
                    f"SELECT {_COLUMNS} FROM tasks WHERE project_id=%s ORDER BY created_at DESC",
                    (int(project_id),),
                )
            return self._hydrate(cur, fetchall(cur))

    def create(
        self,
        *,
        project_id: int,
        title: str,
        description: str,
        priority: TaskPriority,
        due_date: Optional[date],
        created_by: int,
        assignee_ids: Sequence[int],
        checklist: Sequence[str],
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO tasks (project_id, title, description, priority, status, due_date, created_by, assigned_by)
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
                """,
                (
                    int(project_id),
                    title,
                    description,
                    priority.value,
                    TaskStatus.PENDING.value,
                    due_date,
                    int(created_by),
                    int(created_by),
                ),
            )
            task_id = int(cur.lastrowid)
            for user_id in assignee_ids:
                cur.execute("INSERT INTO task_assignees (task_id, user_id) VALUES (%s, %s)", (task_id, int(user_id)))
            for item in checklist:
                cur.execute("INSERT INTO checklist_items (task_id, item) VALUES (%s, %s)", (task_id, item))
            return task_id

    def update_status(self, snapshot: TaskSnapshot, status: TaskStatus) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE tasks SET status=%s, version=version+1 WHERE task_id=%s AND version=%s",
                (status.value, int(snapshot.task_id), int(snapshot.version)),
            )
            return cur.rowcount == 1

    def set_checklist_item(
        self,
        snapshot: TaskSnapshot,
        item_id: int,
        *,
        is_completed: bool,
        completed_by: Optional[int],
        completed_at: Optional[datetime],
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            # Claim the task row first; the item update and progress recompute ride on that version.
            cur.execute(
                "UPDATE tasks SET version=version+1 WHERE task_id=%s AND version=%s",
                (int(snapshot.task_id), int(snapshot.version)),
            )
            if cur.rowcount != 1:
                return False

            cur.execute(
                """
                UPDATE checklist_items SET is_completed=%s, completed_by=%s, completed_at=%s
                WHERE item_id=%s AND task_id=%s
                """,
                (1 if is_completed else 0, completed_by, completed_at, int(item_id), int(snapshot.task_id)),
            )
            cur.execute(
                """
                UPDATE tasks SET progress = COALESCE(
                    (SELECT ROUND(100 * SUM(is_completed) / COUNT(*)) FROM checklist_items WHERE task_id=%s), 0
                )
                WHERE task_id=%s
                """,
                (int(snapshot.task_id), int(snapshot.task_id)),
            )
            return True

    def delete(self, snapshot: TaskSnapshot) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM tasks WHERE task_id=%s AND version=%s",
                (int(snapshot.task_id), int(snapshot.version)),
            )
            return cur.rowcount == 1

from __future__ import annotations

from collections import defaultdict
from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import ProjectRole, ProjectState
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause
from ..policy.model import ProjectSnapshot
from .model import Announcement, Participant, Project
from .repository import ProjectRepository

_COLUMNS = "project_id, project_name, description, state, created_by, version"
_ANNOUNCEMENT_COLUMNS = "announcement_id, project_id, msg, file, original_name, posted_by, posted_by_email, posted_at"


def _row_to_announcement(row: dict) -> Announcement:
    return Announcement(
        announcement_id=int(row["announcement_id"]),
        project_id=int(row["project_id"]),
        msg=row["msg"],
        file=row.get("file"),
        original_name=row.get("original_name"),
        posted_by=row.get("posted_by"),
        posted_by_email=row.get("posted_by_email") or "",
        posted_at=row["posted_at"],
    )


class MySQLProjectRepository(ProjectRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _participants(self, cur, project_ids: Sequence[int]) -> dict[int, list[Participant]]:
        out: dict[int, list[Participant]] = defaultdict(list)
        if not project_ids:
            return out
        cur.execute(
            f"""
            SELECT pp.project_id, pp.user_id, u.email, pp.role_in_project
            FROM project_participants pp
            JOIN users u ON u.user_id = pp.user_id
            WHERE pp.project_id IN ({in_clause(project_ids)})
            ORDER BY pp.project_id, pp.user_id
            """,
            tuple(project_ids),
        )
        for r in fetchall(cur):
            out[int(r["project_id"])].append(
                Participant(
                    user_id=int(r["user_id"]),
                    email=r["email"],
                    role_in_project=ProjectRole(r["role_in_project"]),
                )
            )
        return out

    @staticmethod
    def _to_project(row: dict, participants: list[Participant]) -> Project:
        return Project(
            project_id=int(row["project_id"]),
            project_name=row["project_name"],
            description=row.get("description") or "",
            state=ProjectState(row["state"]),
            participants=tuple(participants),
            created_by=row.get("created_by"),
            version=int(row.get("version") or 0),
        )

    def get_by_id(self, project_id: int) -> Optional[Project]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM projects WHERE project_id=%s", (int(project_id),))
            row = fetchone(cur)
            if not row:
                return None
            parts = self._participants(cur, [int(row["project_id"])])
            return self._to_project(row, parts[int(row["project_id"])])

    def get_by_name(self, project_name: str) -> Optional[Project]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM projects WHERE project_name=%s", (project_name,))
            row = fetchone(cur)
            if not row:
                return None
            parts = self._participants(cur, [int(row["project_id"])])
            return self._to_project(row, parts[int(row["project_id"])])

    def list_all(self) -> Sequence[Project]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM projects ORDER BY created_at DESC")
            rows = fetchall(cur)
            parts = self._participants(cur, [int(r["project_id"]) for r in rows])
            return [self._to_project(r, parts[int(r["project_id"])]) for r in rows]

    def create(
        self,
        *,
        project_name: str,
        description: str,
        state: ProjectState,
        participants: Sequence[Participant],
        created_by: int,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO projects (project_name, description, state, created_by) VALUES (%s, %s, %s, %s)",
                (project_name, description, state.value, int(created_by)),
            )
            project_id = int(cur.lastrowid)
            for p in participants:
                cur.execute(
                    "INSERT INTO project_participants (project_id, user_id, role_in_project) VALUES (%s, %s, %s)",
                    (project_id, int(p.user_id), p.role_in_project.value),
                )
            return project_id

    def update_state(self, snapshot: ProjectSnapshot, state: ProjectState) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE projects SET state=%s, version=version+1 WHERE project_id=%s AND version=%s",
                (state.value, int(snapshot.project_id), int(snapshot.version)),
            )
            return cur.rowcount == 1

    def list_announcements(self, project_id: int) -> Sequence[Announcement]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_ANNOUNCEMENT_COLUMNS} FROM project_announcements
                WHERE project_id=%s
                ORDER BY posted_at DESC, announcement_id DESC
                """,
                (int(project_id),),
            )
            return [_row_to_announcement(r) for r in fetchall(cur)]

    def get_announcement(self, announcement_id: int) -> Optional[Announcement]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_ANNOUNCEMENT_COLUMNS} FROM project_announcements WHERE announcement_id=%s",
                (int(announcement_id),),
            )
            row = fetchone(cur)
            return _row_to_announcement(row) if row else None

    def add_announcement(
        self,
        *,
        project_id: int,
        msg: str,
        file: Optional[str],
        original_name: Optional[str],
        posted_by: int,
        posted_by_email: str,
        posted_at: datetime,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO project_announcements
                    (project_id, msg, file, original_name, posted_by, posted_by_email, posted_at)
                VALUES (%s, %s, %s, %s, %s, %s, %s)
                """,
                (int(project_id), msg, file, original_name, int(posted_by), posted_by_email, posted_at),
            )
            return int(cur.lastrowid)

    def delete_announcement(self, announcement_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM project_announcements WHERE announcement_id=%s", (int(announcement_id),))
            return cur.rowcount == 1

from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import ProfileState, Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause
from ..policy.model import ProfileSnapshot
from .model import User
from .repository import UserRepository

_COLUMNS = (
    "user_id, name, email, password_hash, role, phone_number, gender, profile_state, state_changed_at, version"
)

_UPDATABLE = {"name", "phone_number", "gender", "role", "profile_state", "state_changed_at"}


def _row_to_user(row: dict) -> User:
    return User(
        user_id=int(row["user_id"]),
        name=row["name"],
        email=row["email"],
        password_hash=row["password_hash"],
        role=Role(row["role"]),
        phone_number=row.get("phone_number") or "",
        gender=row.get("gender") or "",
        profile_state=ProfileState(row.get("profile_state") or "active"),
        state_changed_at=row.get("state_changed_at"),
        version=int(row.get("version") or 0),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: int) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE user_id=%s", (int(user_id),))
            row = fetchone(cur)
            return _row_to_user(row) if row else None

    def get_by_email(self, email: str) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE email=%s", ((email or "").lower(),))
            row = fetchone(cur)
            return _row_to_user(row) if row else None

    def list_by_ids(self, user_ids: Sequence[int]) -> Sequence[User]:
        ids = [int(i) for i in user_ids]
        if not ids:
            return []
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE user_id IN ({in_clause(ids)})", tuple(ids))
            return [_row_to_user(r) for r in fetchall(cur)]

    def list_by_emails(self, emails: Sequence[str]) -> Sequence[User]:
        values = [e.lower() for e in emails if e]
        if not values:
            return []
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE email IN ({in_clause(values)})", tuple(values))
            return [_row_to_user(r) for r in fetchall(cur)]

    def list_all(self) -> Sequence[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users ORDER BY name")
            return [_row_to_user(r) for r in fetchall(cur)]

    def create_user(self, *, name: str, email: str, password_hash: str, role: Role) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO users (name, email, password_hash, role) VALUES (%s, %s, %s, %s)",
                (name, email.lower(), password_hash, role.value),
            )
            return int(cur.lastrowid)

    def update_fields(self, snapshot: ProfileSnapshot, fields: dict) -> bool:
        unknown = set(fields) - _UPDATABLE
        if unknown:
            raise ValueError(f"Cannot update user columns: {sorted(unknown)}")

        # version always moves, so rowcount is 1 even when no column value changed
        assignments = [f"{col}=%s" for col in fields] + ["version=version+1"]
        params = [v.value if hasattr(v, "value") else v for v in fields.values()]
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE users SET {', '.join(assignments)} WHERE user_id=%s AND version=%s",
                tuple(params + [int(snapshot.user_id), int(snapshot.version)]),
            )
            return cur.rowcount == 1

    def delete_by_id(self, snapshot: ProfileSnapshot) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM users WHERE user_id=%s AND version=%s",
                (int(snapshot.user_id), int(snapshot.version)),
            )
            return cur.rowcount == 1

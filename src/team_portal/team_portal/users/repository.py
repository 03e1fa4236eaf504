from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import Role
from ..policy.model import ProfileSnapshot
from .model import User


class UserRepository(Protocol):
    """Repository interface for User.

    Note (DIP): services depend on this interface, not on a concrete database.
    """

    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

    def list_by_ids(self, user_ids: Sequence[int]) -> Sequence[User]:
        raise NotImplementedError

    def list_by_emails(self, emails: Sequence[str]) -> Sequence[User]:
        raise NotImplementedError

    def list_all(self) -> Sequence[User]:
        raise NotImplementedError

    def create_user(self, *, name: str, email: str, password_hash: str, role: Role) -> int:
        raise NotImplementedError

    def update_fields(self, snapshot: ProfileSnapshot, fields: dict) -> bool:
        """Apply a whitelisted column -> value mapping if the row is still at
        ``snapshot.version``. False when it moved on or is gone."""

        raise NotImplementedError

    def delete_by_id(self, snapshot: ProfileSnapshot) -> bool:
        raise NotImplementedError

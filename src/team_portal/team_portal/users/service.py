from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.validators import require_choice, require_email, require_min_length, require_non_empty
from ..core.constants import MIN_PASSWORD_LENGTH
from ..core.enums import ProfileState, Role
from ..core.exceptions import AuthenticationError, ConflictError, NotFoundError, ValidationError
from ..policy.model import Actor, ProfileAction, ProfileSnapshot
from ..policy.rules import authorize, filter_visible
from .model import User
from .repository import UserRepository

logger = logging.getLogger(__name__)

# Fields a profile update may touch; anything else (password, email, ...) is ignored.
EDITABLE_PROFILE_FIELDS = ("name", "phone_number", "gender", "role", "profile_state")


class AuthService:
    """Use case: authenticate user (login)."""

    def __init__(self, users: UserRepository):
        self._users = users

    def authenticate(self, email: str, password: str) -> User:
        user = self._users.get_by_email((email or "").strip().lower())
        if not user or not user.is_active:
            raise AuthenticationError("Invalid email or password")

        try:
            ok = check_password_hash(user.password_hash, password or "")
        except Exception:
            # e.g. placeholder hashes like 'CHANGE_ME' or corrupted values
            ok = False

        if not ok:
            raise AuthenticationError("Invalid email or password")
        return user

    def resolve_actor(self, user_id: Optional[int]) -> Actor:
        """Re-load the session user so role changes apply on the next request."""
        if user_id is None:
            raise AuthenticationError("Please log in to continue")
        user = self._users.get_by_id(int(user_id))
        if not user or not user.is_active:
            raise AuthenticationError("Please log in to continue")
        return user.to_actor()


class UserService:
    """Use case: read and manage user profiles."""

    def __init__(self, users: UserRepository, *, clock: Callable[[], datetime] = datetime.now):
        self._users = users
        self._clock = clock

    def _load(self, user_id: int) -> User:
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("User not found")
        return user

    def _raise_stale(self, user_id: int, what: str) -> None:
        self._load(user_id)
        raise ConflictError(f"{what} was changed by someone else, reload and try again")

    def register_user(self, actor: Actor, *, name: str, email: str, password: str, role: Role = Role.MEMBER) -> int:
        name = require_non_empty(name, "Name")
        email = require_email(email)
        require_min_length(password, "Password", MIN_PASSWORD_LENGTH)
        role = require_choice(role, Role, "Role")
        authorize(actor, ProfileSnapshot(user_id=None, role=role, email=email), ProfileAction.CREATE)
        if role == Role.ADMIN:
            raise ValidationError("Admin accounts cannot be created here")

        if self._users.get_by_email(email):
            raise ValidationError("Email already registered")

        user_id = self._users.create_user(
            name=name,
            email=email,
            password_hash=generate_password_hash(password),
            role=role,
        )
        logger.info("User %s registered by %s as %s", email, actor.user_id, role.value)
        return user_id

    def get_profile(self, actor: Actor, user_id: int) -> User:
        user = self._load(user_id)
        authorize(actor, user.snapshot(), ProfileAction.READ)
        return user

    def get_profile_by_email(self, actor: Actor, email: str) -> User:
        user = self._users.get_by_email((email or "").strip().lower())
        if not user:
            raise NotFoundError("User not found")
        authorize(actor, user.snapshot(), ProfileAction.READ)
        return user

    def list_profiles(self, actor: Actor) -> list[User]:
        users = list(self._users.list_all())
        visible = {s.user_id for s in filter_visible(actor, ProfileAction.READ, [u.snapshot() for u in users])}
        return [u for u in users if u.user_id in visible]

    def update_profile(self, actor: Actor, user_id: int, changes: dict) -> User:
        user = self._load(user_id)

        fields: dict = {}
        for key in EDITABLE_PROFILE_FIELDS:
            if key in changes and changes[key] is not None:
                fields[key] = changes[key]

        if "name" in fields:
            fields["name"] = require_non_empty(fields["name"], "Name")
        if "role" in fields:
            fields["role"] = require_choice(fields["role"], Role, "Role")
        if "profile_state" in fields:
            fields["profile_state"] = require_choice(fields["profile_state"], ProfileState, "Profile state")
            if fields["profile_state"] != user.profile_state:
                fields["state_changed_at"] = self._clock()

        snapshot = user.snapshot(requested_role=fields.get("role"))
        authorize(actor, snapshot, ProfileAction.UPDATE)

        if fields.get("role") == user.role:
            fields.pop("role")
        if not fields:
            return user
        if not self._users.update_fields(snapshot, fields):
            self._raise_stale(user.user_id, "Profile")

        logger.info("Profile %s updated by %s (%s)", user.user_id, actor.user_id, ", ".join(sorted(fields)))
        return self._load(user.user_id)

    def delete_user(self, actor: Actor, user_id: int) -> None:
        user = self._load(user_id)
        snapshot = user.snapshot()
        authorize(actor, snapshot, ProfileAction.DELETE)
        if not self._users.delete_by_id(snapshot):
            self._raise_stale(user.user_id, "User")
        logger.info("User %s deleted by %s", user.user_id, actor.user_id)

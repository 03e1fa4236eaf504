from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import ProfileState, Role
from ..policy.model import Actor, ProfileSnapshot, RecipientCandidate


@dataclass(frozen=True)
class User:
    """Domain entity: User.

    Note: Plain data object (no DB access code here).
    """

    user_id: int
    name: str
    email: str
    password_hash: str
    role: Role
    phone_number: str = ""
    gender: str = "prefer not to say"
    profile_state: ProfileState = ProfileState.ACTIVE
    state_changed_at: Optional[datetime] = None
    version: int = 0

    @property
    def is_active(self) -> bool:
        return self.profile_state == ProfileState.ACTIVE

    def to_actor(self) -> Actor:
        return Actor(user_id=self.user_id, role=self.role, email=self.email)

    def snapshot(self, *, requested_role: Optional[Role] = None) -> ProfileSnapshot:
        return ProfileSnapshot(
            user_id=self.user_id,
            role=self.role,
            email=self.email,
            requested_role=requested_role,
            version=self.version,
        )

    def as_recipient(self) -> RecipientCandidate:
        return RecipientCandidate(user_id=self.user_id, email=self.email, role=self.role)

    def to_public_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "name": self.name,
            "email": self.email,
            "role": self.role.value,
            "phone_number": self.phone_number,
            "gender": self.gender,
            "profile_state": self.profile_state.value,
            "state_changed_at": self.state_changed_at.isoformat() if self.state_changed_at else None,
        }

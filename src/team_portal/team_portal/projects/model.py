from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import ProjectRole, ProjectState
from ..policy.model import ParticipantSnapshot, ProjectSnapshot


@dataclass(frozen=True)
class Participant:
    user_id: int
    email: str
    role_in_project: ProjectRole


@dataclass(frozen=True)
class Project:
    project_id: int
    project_name: str
    description: str
    state: ProjectState
    participants: tuple[Participant, ...] = ()
    created_by: Optional[int] = None
    version: int = 0

    def snapshot(self) -> ProjectSnapshot:
        return ProjectSnapshot(
            project_id=self.project_id,
            state=self.state,
            participants=tuple(
                ParticipantSnapshot(user_id=p.user_id, email=p.email, role_in_project=p.role_in_project)
                for p in self.participants
            ),
            version=self.version,
        )

    def to_dict(self) -> dict:
        return {
            "project_id": self.project_id,
            "project_name": self.project_name,
            "description": self.description,
            "state": self.state.value,
            "participants": [
                {"user_id": p.user_id, "email": p.email, "role_in_project": p.role_in_project.value}
                for p in self.participants
            ],
        }


@dataclass(frozen=True)
class Announcement:
    """A message pinned to a project, optionally pointing at an uploaded file."""

    announcement_id: int
    project_id: int
    msg: str
    posted_by: Optional[int]
    posted_by_email: str
    posted_at: datetime
    file: Optional[str] = None
    original_name: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "announcement_id": self.announcement_id,
            "project_id": self.project_id,
            "msg": self.msg,
            "file": self.file,
            "originalName": self.original_name,
            "posted_by": self.posted_by,
            "posted_by_email": self.posted_by_email,
            "date": self.posted_at.isoformat() if self.posted_at else None,
        }

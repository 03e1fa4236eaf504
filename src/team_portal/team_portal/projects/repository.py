from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import ProjectState
from ..policy.model import ProjectSnapshot
from .model import Announcement, Participant, Project


class ProjectRepository(Protocol):
    def get_by_id(self, project_id: int) -> Optional[Project]:
        raise NotImplementedError

    def get_by_name(self, project_name: str) -> Optional[Project]:
        raise NotImplementedError

    def list_all(self) -> Sequence[Project]:
        raise NotImplementedError

    def create(
        self,
        *,
        project_name: str,
        description: str,
        state: ProjectState,
        participants: Sequence[Participant],
        created_by: int,
    ) -> int:
        raise NotImplementedError

    def update_state(self, snapshot: ProjectSnapshot, state: ProjectState) -> bool:
        """Conditional on ``snapshot.version``; False when the row moved on."""

        raise NotImplementedError

    def list_announcements(self, project_id: int) -> Sequence[Announcement]:
        """Newest first."""

        raise NotImplementedError

    def get_announcement(self, announcement_id: int) -> Optional[Announcement]:
        raise NotImplementedError

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
        raise NotImplementedError

    def delete_announcement(self, announcement_id: int) -> bool:
        raise NotImplementedError

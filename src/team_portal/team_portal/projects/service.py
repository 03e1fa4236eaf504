from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Callable, Iterable, Optional

from ..common.validators import require_choice, require_non_empty
from ..core.enums import ProjectRole, ProjectState
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..policy.model import Actor, ProjectAction, ProjectSnapshot
from ..policy.rules import authorize, filter_visible
from ..users.repository import UserRepository
from .model import Announcement, Participant, Project
from .repository import ProjectRepository

logger = logging.getLogger(__name__)

_PROJECT_NAME_RE = re.compile(r"^[A-Za-z0-9_\- ]+$")


class ProjectService:
    """Use case: create projects and manage their lifecycle."""

    def __init__(
        self, projects: ProjectRepository, users: UserRepository, *, clock: Callable[[], datetime] = datetime.now
    ):
        self._projects = projects
        self._users = users
        self._clock = clock

    def _load(self, project_id: int) -> Project:
        project = self._projects.get_by_id(int(project_id))
        if not project:
            raise NotFoundError("Project not found")
        return project

    def _participants(self, raw: Iterable[dict]) -> list[Participant]:
        wanted: dict[int, ProjectRole] = {}
        for entry in raw or []:
            if not isinstance(entry, dict) or entry.get("user_id") in (None, ""):
                raise ValidationError("Each participant needs a user_id")
            try:
                user_id = int(entry["user_id"])
            except (TypeError, ValueError):
                raise ValidationError("Participant user_id must be an integer")
            role = require_choice(entry.get("role_in_project") or ProjectRole.PROJECT_MEMBER, ProjectRole, "Project role")
            wanted[user_id] = role

        users = {u.user_id: u for u in self._users.list_by_ids(list(wanted))}
        missing = sorted(set(wanted) - set(users))
        if missing:
            raise ValidationError(f"Unknown participant(s): {', '.join(str(m) for m in missing)}")

        participants = [
            Participant(user_id=uid, email=users[uid].email.lower(), role_in_project=role) for uid, role in wanted.items()
        ]
        managers = [p for p in participants if p.role_in_project == ProjectRole.PROJECT_MANAGER]
        if participants and len(managers) != 1:
            raise ValidationError("A project needs exactly one project-manager")
        return participants

    def create_project(
        self,
        actor: Actor,
        *,
        project_name: str,
        description: str = "",
        state: str | ProjectState = ProjectState.ONGOING,
        participants: Optional[Iterable[dict]] = None,
    ) -> Project:
        state = require_choice(state or ProjectState.ONGOING, ProjectState, "Project state")
        authorize(actor, ProjectSnapshot(project_id=None, state=state), ProjectAction.CREATE)

        project_name = require_non_empty(project_name, "Project name")
        if not _PROJECT_NAME_RE.match(project_name):
            raise ValidationError("Project name may only contain letters, numbers, spaces, '-' and '_'")
        if self._projects.get_by_name(project_name):
            raise ValidationError("A project with this name already exists")

        members = self._participants(participants or [])
        project_id = self._projects.create(
            project_name=project_name,
            description=(description or "").strip(),
            state=state,
            participants=members,
            created_by=actor.user_id,
        )
        logger.info("Project %s (%s) created by %s", project_id, project_name, actor.user_id)
        return self._load(project_id)

    def list_projects(self, actor: Actor) -> list[Project]:
        projects = list(self._projects.list_all())
        visible = {s.project_id for s in filter_visible(actor, ProjectAction.READ, [p.snapshot() for p in projects])}
        return [p for p in projects if p.project_id in visible]

    def get_project(self, actor: Actor, project_id: int) -> Project:
        project = self._load(project_id)
        authorize(actor, project.snapshot(), ProjectAction.READ)
        return project

    def update_project_state(self, actor: Actor, project_id: int, state: str | ProjectState) -> Project:
        project = self._load(project_id)
        snapshot = project.snapshot()
        authorize(actor, snapshot, ProjectAction.UPDATE)
        state = require_choice(state, ProjectState, "Project state")

        if state != project.state and not self._projects.update_state(snapshot, state):
            raise ConflictError("Project was changed by someone else, reload and try again")
        logger.info("Project %s state %s -> %s by %s", project.project_id, project.state.value, state.value, actor.user_id)
        return self._load(project.project_id)

    def _posted_at(self, value) -> datetime:
        if isinstance(value, datetime):
            return value
        if isinstance(value, str) and value.strip():
            try:
                return datetime.fromisoformat(value.strip().replace("Z", "+00:00")).replace(tzinfo=None)
            except ValueError:
                logger.debug("Ignoring unparseable announcement date %r", value)
        return self._clock()

    def post_announcement(
        self,
        actor: Actor,
        project_id: int,
        *,
        msg: str,
        file: Optional[str] = None,
        original_name: Optional[str] = None,
        posted_at=None,
    ) -> Announcement:
        """Pin a message to the project.

        ``posted_at`` may be a datetime or an ISO string; anything missing or
        unparseable falls back to the clock.
        """
        project = self._load(project_id)
        authorize(actor, project.snapshot(), ProjectAction.ANNOUNCE)
        msg = msg.strip() if isinstance(msg, str) else ""
        if not msg:
            raise ValidationError("Missing required fields")

        announcement_id = self._projects.add_announcement(
            project_id=project.project_id,
            msg=msg,
            file=str(file or "").strip() or None,
            original_name=str(original_name or "").strip() or None,
            posted_by=actor.user_id,
            posted_by_email=actor.email,
            posted_at=self._posted_at(posted_at),
        )
        logger.info("Announcement %s posted to project %s by %s", announcement_id, project.project_id, actor.user_id)
        return self._projects.get_announcement(announcement_id)

    def list_announcements(self, actor: Actor, project_id: int) -> list[Announcement]:
        project = self._load(project_id)
        authorize(actor, project.snapshot(), ProjectAction.READ)
        return list(self._projects.list_announcements(project.project_id))

    def delete_announcement(self, actor: Actor, project_id: int, announcement_id: int) -> None:
        project = self._load(project_id)
        announcement = self._projects.get_announcement(int(announcement_id))
        if not announcement or announcement.project_id != project.project_id:
            raise NotFoundError("Announcement not found")
        authorize(actor, project.snapshot(), ProjectAction.DELETE_ANNOUNCEMENT)
        if not self._projects.delete_announcement(announcement.announcement_id):
            raise NotFoundError("Announcement not found")
        logger.info(
            "Announcement %s deleted from project %s by %s", announcement.announcement_id, project.project_id, actor.user_id
        )

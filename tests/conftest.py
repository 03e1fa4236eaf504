"""Shared fixtures: a handful of actors, an in-memory user store, a recording event sink."""
from __future__ import annotations

from dataclasses import replace

import pytest

from team_portal.core.enums import Role
from team_portal.policy.model import Actor
from team_portal.users.model import User


class InMemoryUsers:
    def __init__(self, users=()):
        self._next_id = 100
        self.users: dict[int, User] = {u.user_id: u for u in users}
        self.deleted: list[int] = []
        self.updates: list[tuple[int, dict]] = []

    def get_by_id(self, user_id):
        return self.users.get(int(user_id))

    def get_by_email(self, email):
        for u in self.users.values():
            if u.email == email:
                return u
        return None

    def list_by_ids(self, user_ids):
        return [self.users[i] for i in user_ids if i in self.users]

    def list_by_emails(self, emails):
        wanted = {e.lower() for e in emails}
        return [u for u in self.users.values() if u.email.lower() in wanted]

    def list_all(self):
        return sorted(self.users.values(), key=lambda u: u.user_id)

    def create_user(self, *, name, email, password_hash, role):
        uid = self._next_id
        self._next_id += 1
        self.users[uid] = User(user_id=uid, name=name, email=email, password_hash=password_hash, role=role)
        return uid

    def _current(self, snapshot):
        user = self.users.get(snapshot.user_id)
        return user if user is not None and user.version == snapshot.version else None

    def update_fields(self, snapshot, fields):
        self.updates.append((snapshot.user_id, dict(fields)))
        user = self._current(snapshot)
        if user is None:
            return False
        self.users[user.user_id] = replace(user, version=user.version + 1, **fields)
        return True

    def delete_by_id(self, snapshot):
        self.deleted.append(snapshot.user_id)
        if self._current(snapshot) is None:
            return False
        del self.users[snapshot.user_id]
        return True


class RecordingEvents:
    def __init__(self):
        self.published: list = []

    def publish(self, event):
        self.published.append(event)

    def of_type(self, event_type):
        return [e for e in self.published if isinstance(e, event_type)]


@pytest.fixture()
def admin() -> Actor:
    return Actor(user_id=1, role=Role.ADMIN, email="admin@example.com")


@pytest.fixture()
def manager() -> Actor:
    return Actor(user_id=2, role=Role.MANAGER, email="manager@example.com")


@pytest.fixture()
def member() -> Actor:
    return Actor(user_id=3, role=Role.MEMBER, email="member@example.com")


@pytest.fixture()
def other_member() -> Actor:
    return Actor(user_id=4, role=Role.MEMBER, email="other@example.com")


@pytest.fixture()
def users_repo(admin, manager, member, other_member) -> InMemoryUsers:
    names = {1: "Admin", 2: "Manager", 3: "Member", 4: "Other"}
    return InMemoryUsers(
        User(user_id=a.user_id, name=names[a.user_id], email=a.email, password_hash="x", role=a.role)
        for a in (admin, manager, member, other_member)
    )


@pytest.fixture()
def events() -> RecordingEvents:
    return RecordingEvents()

from __future__ import annotations

from dataclasses import replace

import pytest

from team_portal.core.enums import Audience, ReadState
from team_portal.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from team_portal.notifications.model import Notification, Recipient
from team_portal.notifications.service import NotificationService
from team_portal.policy.model import DenyReason


class InMemoryNotifications:
    def __init__(self):
        self._next_id = 1
        self.notifications: dict[int, Notification] = {}
        self.receipts: list[tuple[int, str]] = []

    def get_by_id(self, notification_id):
        return self.notifications.get(notification_id)

    def list_visible(self, *, addressed_to, limit=500):
        newest = sorted(self.notifications.values(), key=lambda n: n.notification_id, reverse=True)
        if addressed_to is not None:
            newest = [
                n for n in newest
                if n.audience == Audience.PUBLIC or addressed_to in {r.email for r in n.recipients}
            ]
        return newest[:limit]

    def count_unread(self, email):
        return sum(
            1
            for n in self.notifications.values()
            for r in n.recipients
            if r.email == email and r.state == ReadState.UNREAD
        )

    def create(self, *, from_email, audience, msg_content, source, recipient_emails):
        nid = self._next_id
        self._next_id += 1
        self.notifications[nid] = Notification(
            notification_id=nid,
            from_email=from_email,
            audience=audience,
            msg_content=msg_content,
            source=source,
            recipients=tuple(Recipient(email=e) for e in recipient_emails),
        )
        return nid

    def mark_read(self, notification_id, email):
        self.receipts.append((notification_id, email))
        n = self.notifications[notification_id]
        others = tuple(r for r in n.recipients if r.email != email)
        self.notifications[notification_id] = replace(n, recipients=others + (Recipient(email, ReadState.READ),))

    def delete(self, notification_id):
        return self.notifications.pop(notification_id, None) is not None


@pytest.fixture()
def repo():
    return InMemoryNotifications()


@pytest.fixture()
def service(repo, users_repo):
    return NotificationService(repo, users_repo)


def _emails(notification):
    return sorted(r.email for r in notification.recipients)


def test_public_send_without_list_reaches_admins_and_managers(service, manager):
    n = service.send(manager, audience="public", msg_content="Release on Friday")

    assert n.audience == Audience.PUBLIC
    assert n.source == "No Files"
    assert _emails(n) == ["admin@example.com", "manager@example.com"]


def test_private_send_keeps_members_and_dedupes(service, admin):
    n = service.send(
        admin,
        audience="private",
        msg_content="1:1 tomorrow",
        source="agenda.pdf",
        recipient_emails=["Member@example.com", "member@example.com", "other@example.com", "ghost@example.com"],
    )

    assert _emails(n) == ["member@example.com", "other@example.com"]
    assert n.source == "agenda.pdf"


def test_public_send_drops_members_from_explicit_list(service, admin):
    n = service.send(admin, audience="public", msg_content="hi", recipient_emails=["member@example.com"])
    assert n.recipients == ()


@pytest.mark.parametrize(
    "kwargs",
    [
        {"audience": "private", "msg_content": "hi"},
        {"audience": "private", "msg_content": "hi", "recipient_emails": ["ghost@example.com"]},
        {"audience": "broadcast", "msg_content": "hi"},
        {"audience": "public", "msg_content": "  "},
    ],
)
def test_send_validation(service, admin, kwargs):
    with pytest.raises(ValidationError):
        service.send(admin, **kwargs)


def test_members_cannot_send(service, repo, member):
    with pytest.raises(AuthorizationError) as exc:
        service.send(member, audience="public", msg_content="hi")
    assert exc.value.reason == DenyReason.INSUFFICIENT_ROLE
    assert repo.notifications == {}


def test_inbox_shows_public_and_addressed(service, admin, manager, member, other_member):
    public = service.send(manager, audience="public", msg_content="all hands")
    to_member = service.send(manager, audience="private", msg_content="ping", recipient_emails=["member@example.com"])
    to_other = service.send(manager, audience="private", msg_content="pong", recipient_emails=["other@example.com"])

    assert [n.notification_id for n in service.list_for(member)] == [to_member.notification_id, public.notification_id]
    assert [n.notification_id for n in service.list_for(other_member)] == [to_other.notification_id, public.notification_id]
    assert len(service.list_for(admin)) == 3


def test_inbox_limit_counts_only_visible_messages(service, manager, member, other_member):
    service.send(manager, audience="private", msg_content="for member", recipient_emails=["member@example.com"])
    service.send(manager, audience="private", msg_content="for other 1", recipient_emails=["other@example.com"])
    service.send(manager, audience="private", msg_content="for other 2", recipient_emails=["other@example.com"])

    assert [n.msg_content for n in service.list_for(member, limit=2)] == ["for member"]
    assert [n.msg_content for n in service.list_for(other_member, limit=1)] == ["for other 2"]


def test_unread_count_follows_receipts(service, manager, member):
    first = service.send(manager, audience="private", msg_content="one", recipient_emails=["member@example.com"])
    service.send(manager, audience="private", msg_content="two", recipient_emails=["member@example.com"])
    service.send(manager, audience="private", msg_content="three", recipient_emails=["other@example.com"])
    assert service.unread_count(member) == 2

    service.mark_read(member, first.notification_id)
    assert service.unread_count(member) == 1


def test_mark_read_flips_own_receipt(service, repo, manager, member):
    n = service.send(manager, audience="private", msg_content="ping", recipient_emails=["member@example.com"])

    updated = service.mark_read(member, n.notification_id)

    assert updated.state_for("member@example.com") == ReadState.READ
    assert repo.receipts == [(n.notification_id, "member@example.com")]


def test_mark_read_of_foreign_private_message(service, repo, manager, admin, other_member):
    n = service.send(manager, audience="private", msg_content="ping", recipient_emails=["member@example.com"])

    with pytest.raises(AuthorizationError) as exc:
        service.mark_read(other_member, n.notification_id)
    assert exc.value.reason == DenyReason.NOT_OWNER

    service.mark_read(admin, n.notification_id)
    assert repo.receipts == []


def test_member_can_mark_public_read(service, repo, manager, member):
    n = service.send(manager, audience="public", msg_content="all hands")
    service.mark_read(member, n.notification_id)
    assert repo.receipts == [(n.notification_id, "member@example.com")]


def test_delete(service, repo, manager, member):
    n = service.send(manager, audience="public", msg_content="oops")

    with pytest.raises(AuthorizationError):
        service.delete(member, n.notification_id)

    service.delete(manager, n.notification_id)
    assert repo.notifications == {}
    with pytest.raises(NotFoundError):
        service.delete(manager, n.notification_id)

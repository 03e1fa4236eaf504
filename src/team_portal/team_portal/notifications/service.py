from __future__ import annotations

import logging
from typing import Iterable

from ..common.validators import require_choice, require_non_empty
from ..core.constants import DEFAULT_LIST_LIMIT
from ..core.enums import Audience
from ..core.exceptions import NotFoundError, ValidationError
from ..policy.model import Actor, NotificationAction, NotificationSnapshot
from ..policy.predicates import is_addressed_to, is_public
from ..policy.rules import authorize, filter_visible, resolve_recipients
from ..users.repository import UserRepository
from .model import Notification
from .repository import NotificationRepository

logger = logging.getLogger(__name__)


class NotificationService:
    """Use case: in-app announcements, public or addressed to specific people."""

    def __init__(self, notifications: NotificationRepository, users: UserRepository):
        self._notifications = notifications
        self._users = users

    def _load(self, notification_id: int) -> Notification:
        notification = self._notifications.get_by_id(int(notification_id))
        if not notification:
            raise NotFoundError("Notification not found")
        return notification

    def send(
        self,
        actor: Actor,
        *,
        audience: str | Audience,
        msg_content: str,
        source: str = "",
        recipient_emails: Iterable[str] = (),
    ) -> Notification:
        """Store a notification.

        Recipients are narrowed to the roles the audience may address; a
        public send with no explicit list goes to every eligible user.
        """
        audience = require_choice(audience, Audience, "data_to")
        draft = NotificationSnapshot(notification_id=None, from_email=actor.email, audience=audience)
        authorize(actor, draft, NotificationAction.SEND)
        msg_content = require_non_empty(msg_content, "Message content")

        wanted = [str(e).strip().lower() for e in recipient_emails or () if str(e or "").strip()]
        if audience == Audience.PRIVATE and not wanted:
            raise ValidationError("Recipients are required for private messages")

        users = self._users.list_by_emails(wanted) if wanted else self._users.list_all()
        recipients = resolve_recipients(audience, [u.as_recipient() for u in users])
        if audience == Audience.PRIVATE and not recipients:
            raise ValidationError("None of the recipients can receive this message")

        notification_id = self._notifications.create(
            from_email=actor.email,
            audience=audience,
            msg_content=msg_content,
            source=(source or "").strip() or "No Files",
            recipient_emails=[r.email for r in recipients],
        )
        logger.info(
            "Notification %s (%s) sent by %s to %d recipient(s)",
            notification_id,
            audience.value,
            actor.user_id,
            len(recipients),
        )
        return self._load(notification_id)

    def list_for(self, actor: Actor, *, limit: int = DEFAULT_LIST_LIMIT) -> list[Notification]:
        """Newest notifications the actor may read, at most ``limit`` of them."""
        addressed_to = None if actor.is_admin else (actor.email or "")
        notifications = list(self._notifications.list_visible(addressed_to=addressed_to, limit=limit))
        visible = {
            s.notification_id
            for s in filter_visible(actor, NotificationAction.READ, [n.snapshot() for n in notifications])
        }
        return [n for n in notifications if n.notification_id in visible][:limit]

    def unread_count(self, actor: Actor) -> int:
        if not actor.email:
            return 0
        return self._notifications.count_unread(actor.email)

    def mark_read(self, actor: Actor, notification_id: int) -> Notification:
        notification = self._load(notification_id)
        snapshot = notification.snapshot()
        authorize(actor, snapshot, NotificationAction.MARK_READ)
        # An admin reading someone else's private message has no receipt to flip.
        if is_public(snapshot) or is_addressed_to(actor, snapshot):
            self._notifications.mark_read(notification.notification_id, actor.email.lower())
        return self._load(notification.notification_id)

    def delete(self, actor: Actor, notification_id: int) -> None:
        notification = self._load(notification_id)
        authorize(actor, notification.snapshot(), NotificationAction.DELETE)
        if not self._notifications.delete(notification.notification_id):
            raise NotFoundError("Notification not found")
        logger.info("Notification %s deleted by %s", notification.notification_id, actor.user_id)

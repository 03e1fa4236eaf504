from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import Audience
from .model import Notification


class NotificationRepository(Protocol):
    def get_by_id(self, notification_id: int) -> Optional[Notification]:
        raise NotImplementedError

    def list_visible(self, *, addressed_to: Optional[str], limit: int = 500) -> Sequence[Notification]:
        """Newest first: public ones plus those with a receipt row for
        ``addressed_to``. ``None`` lists everything."""
        raise NotImplementedError

    def count_unread(self, email: str) -> int:
        raise NotImplementedError

    def create(
        self,
        *,
        from_email: str,
        audience: Audience,
        msg_content: str,
        source: str,
        recipient_emails: Sequence[str],
    ) -> int:
        raise NotImplementedError

    def mark_read(self, notification_id: int, email: str) -> None:
        raise NotImplementedError

    def delete(self, notification_id: int) -> bool:
        raise NotImplementedError

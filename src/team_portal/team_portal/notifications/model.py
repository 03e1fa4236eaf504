from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import Audience, ReadState
from ..policy.model import NotificationSnapshot


@dataclass(frozen=True)
class Recipient:
    email: str
    state: ReadState = ReadState.UNREAD


@dataclass(frozen=True)
class Notification:
    notification_id: int
    from_email: str
    audience: Audience
    msg_content: str
    source: str = "No Files"
    sent_at: Optional[datetime] = None
    recipients: tuple[Recipient, ...] = ()

    def snapshot(self) -> NotificationSnapshot:
        return NotificationSnapshot(
            notification_id=self.notification_id,
            from_email=self.from_email,
            audience=self.audience,
            recipient_emails=frozenset(r.email for r in self.recipients),
        )

    def state_for(self, email: str) -> Optional[ReadState]:
        email = (email or "").lower()
        for r in self.recipients:
            if r.email.lower() == email:
                return r.state
        return None

    def to_dict(self) -> dict:
        return {
            "notification_id": self.notification_id,
            "from_email": self.from_email,
            "data_to": self.audience.value,
            "msg": {"msg_content": self.msg_content, "source": self.source},
            "to_email": [{"email": r.email, "state": r.state.value} for r in self.recipients],
            "date": self.sent_at.isoformat() if self.sent_at else None,
        }

from __future__ import annotations

import logging
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Mapping

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SmtpMailer:
    host: str = ""
    port: int = 587
    user: str = ""
    password: str = ""
    use_tls: bool = True
    mail_from: str = ""
    timeout: float = 10.0

    @classmethod
    def from_config(cls, config: Mapping) -> "SmtpMailer":
        return cls(
            host=config.get("SMTP_HOST") or "",
            port=int(config.get("SMTP_PORT") or 587),
            user=config.get("SMTP_USER") or "",
            password=config.get("SMTP_PASSWORD") or "",
            use_tls=bool(config.get("SMTP_USE_TLS", True)),
            mail_from=config.get("MAIL_FROM") or config.get("SMTP_USER") or "",
        )

    @property
    def configured(self) -> bool:
        return bool(self.host and self.mail_from)

    def send(self, to_email: str, subject: str, body: str) -> bool:
        """Send one plain-text mail. Returns False when SMTP is not configured."""
        if not to_email:
            return False
        if not self.configured:
            logger.info("SMTP not configured; skipped mail to %s: %s", to_email, subject)
            return False

        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = self.mail_from
        msg["To"] = to_email
        msg.set_content(body)

        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
            if self.use_tls:
                smtp.starttls()
            if self.user:
                smtp.login(self.user, self.password)
            smtp.send_message(msg)
        logger.info("Mail sent to %s: %s", to_email, subject)
        return True

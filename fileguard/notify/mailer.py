"""
SMTP delivery of rendered reports.
"""

from __future__ import annotations

import asyncio
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage

from fileguard.core.config import settings
from fileguard.core.log import logger
from fileguard.notify.template import render
from fileguard.schema.report import Report

__all__ = ("EmailNotifier",)


@dataclass
class EmailNotifier:
    recipient: str
    sender: str
    subject_template: str
    body_template: str
    site_name: str
    host: str = "localhost"
    port: int = 25
    user: str | None = None
    password: str | None = None
    starttls: bool = False
    timeout: float = 30.0

    @classmethod
    def from_settings(cls) -> EmailNotifier | None:
        if not settings.NOTIFY_ENABLED or not settings.EMAIL_RECIPIENT:
            return None
        return cls(
            recipient=settings.EMAIL_RECIPIENT,
            sender=settings.EMAIL_SENDER,
            subject_template=settings.EMAIL_SUBJECT,
            body_template=settings.EMAIL_TEMPLATE,
            site_name=settings.SITE_NAME,
            host=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            user=settings.SMTP_USER,
            password=settings.SMTP_PASSWORD,
            starttls=settings.SMTP_STARTTLS,
            timeout=settings.SMTP_TIMEOUT_SECONDS,
        )

    def build_message(self, report: Report) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = self.recipient
        message["Subject"] = render(self.subject_template, report, self.site_name).replace("\n", " ")
        message.set_content(render(self.body_template, report, self.site_name))
        return message

    def _send_sync(self, message: EmailMessage) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
            if self.starttls:
                smtp.starttls()
            if self.user and self.password:
                smtp.login(self.user, self.password)
            smtp.send_message(message)

    async def send(self, report: Report) -> bool:
        """Deliver the report. Returns False, after logging, when delivery fails."""
        message = self.build_message(report)
        try:
            await asyncio.to_thread(self._send_sync, message)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error(f"Notification to {self.recipient} failed: {exc}")
            return False
        logger.info(f"Notification sent to {self.recipient}")
        return True

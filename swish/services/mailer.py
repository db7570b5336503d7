import logging
from email.message import EmailMessage
from typing import Optional, Protocol

import aiosmtplib

from swish.core.config import settings

logger = logging.getLogger(__name__)


class Mailer(Protocol):
    async def send(self, to: str, subject: str, html: str, text: Optional[str] = None) -> bool:
        ...


class SmtpMailer:
    """Sends mail through the SMTP server from settings; a no-op that returns False when none is configured."""

    def __init__(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        use_tls: bool = False,
        sender: Optional[str] = None,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.sender = sender or username

    @classmethod
    def from_settings(cls) -> "SmtpMailer":
        return cls(
            host=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            username=settings.SMTP_USER,
            password=settings.SMTP_PASS,
            use_tls=settings.SMTP_SECURE,
            sender=settings.SMTP_FROM,
        )

    @property
    def configured(self) -> bool:
        return bool(self.host and self.port and self.username and self.password)

    async def send(self, to: str, subject: str, html: str, text: Optional[str] = None) -> bool:
        if not self.configured:
            logger.info("SMTP not configured; skipping mail '%s' to %s", subject, to)
            return False

        message = EmailMessage()
        message["From"] = f"SWISH <{self.sender}>"
        message["To"] = to
        message["Subject"] = subject
        message.set_content(text or "")
        message.add_alternative(html, subtype="html")

        await aiosmtplib.send(
            message,
            hostname=self.host,
            port=self.port,
            username=self.username,
            password=self.password,
            use_tls=self.use_tls,
        )
        logger.info("Mail '%s' sent to %s", subject, to)
        return True

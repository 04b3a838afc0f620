"""
SMTP email transport.
"""

import logging
import smtplib
import ssl
from email.message import EmailMessage
from typing import Optional

from ..domain.exceptions import NotificationError
from ..services.notifications import OutgoingEmail

logger = logging.getLogger(__name__)


class SMTPTransport:
    """
    Delivers one message per connection through an SMTP relay (STARTTLS).

    Errors are raised as NotificationError; retrying is the notifier's job.
    """

    def __init__(
        self,
        host: str,
        port: int = 587,
        username: Optional[str] = None,
        password: Optional[str] = None,
        use_tls: bool = True,
        timeout: int = 30
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.timeout = timeout

    def build_message(self, message: OutgoingEmail, sender: str) -> EmailMessage:
        mime = EmailMessage()
        mime["From"] = sender
        mime["To"] = message.to
        mime["Subject"] = message.subject
        mime.set_content(message.text)
        if message.html:
            mime.add_alternative(message.html, subtype="html")
        return mime

    def send(self, message: OutgoingEmail, sender: str) -> None:
        mime = self.build_message(message, sender)

        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
                if self.use_tls:
                    smtp.starttls(context=ssl.create_default_context())
                if self.username:
                    smtp.login(self.username, self.password or "")
                smtp.send_message(mime)
        except (smtplib.SMTPException, OSError) as exc:
            raise NotificationError(f"SMTP delivery to {message.to} failed: {exc}") from exc

        logger.debug("Handed message for %s to %s:%s", message.to, self.host, self.port)

from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage
from typing import List, Optional

from ..config import CrawlConfig

logger = logging.getLogger(__name__)


class EmailNotifier:
    """Sends plain-text crawl summaries over SMTP."""

    def __init__(
        self,
        recipients: List[str],
        *,
        host: str = "localhost",
        port: int = 25,
        sender: str = "ikea_crawler@localhost",
        username: Optional[str] = None,
        password: Optional[str] = None,
        starttls: bool = False,
        timeout: float = 30.0,
    ) -> None:
        self.recipients = list(recipients)
        self.host = host
        self.port = port
        self.sender = sender
        self.username = username
        self.password = password
        self.starttls = starttls
        self.timeout = timeout

    @classmethod
    def from_config(cls, cfg: CrawlConfig) -> Optional["EmailNotifier"]:
        if not cfg.notify:
            return None
        return cls(
            cfg.notify,
            host=cfg.smtp_host,
            port=cfg.smtp_port,
            sender=cfg.smtp_sender,
            username=cfg.smtp_user,
            password=cfg.smtp_password,
            starttls=cfg.smtp_starttls,
        )

    def build_message(self, subject: str, body: str) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = self.sender
        msg["To"] = ", ".join(self.recipients)
        msg.set_content(body)
        return msg

    def send(self, subject: str, body: str) -> None:
        msg = self.build_message(subject, body)
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
            if self.starttls:
                smtp.starttls()
            if self.username:
                smtp.login(self.username, self.password or "")
            smtp.send_message(msg)
        logger.info("Sent failure summary to %s", ", ".join(self.recipients))

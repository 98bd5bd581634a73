"""SMTP dispatcher that mails a short notice for every new message."""

from __future__ import annotations

from dataclasses import dataclass

import aiosmtplib
from loguru import logger

from inboxwatch.application.ports.dispatcher import NotificationDispatcher
from inboxwatch.domain.entities.candidate import Candidate
from inboxwatch.domain.errors import DispatchError
from inboxwatch.infrastructure.notify.formatter import build_notification


@dataclass(frozen=True)
class SmtpConfig:
    host: str
    port: int
    username: str
    password: str
    recipient: str
    sender: str
    use_tls: bool = True
    timeout_seconds: float = 30.0


class SmtpDispatcher(NotificationDispatcher):
    """Sends one message per notification over a fresh SMTP session."""

    def __init__(self, cfg: SmtpConfig) -> None:
        self.cfg = cfg

    def _client(self) -> aiosmtplib.SMTP:
        return aiosmtplib.SMTP(
            hostname=self.cfg.host,
            port=self.cfg.port,
            use_tls=self.cfg.use_tls,
            timeout=self.cfg.timeout_seconds,
        )

    async def verify(self) -> None:
        """Connect and authenticate once so bad credentials surface at startup."""
        smtp = self._client()
        try:
            await smtp.connect()
            await smtp.login(self.cfg.username, self.cfg.password)
            await smtp.quit()
        except (aiosmtplib.SMTPException, OSError) as e:
            logger.error(f"SMTP verify failed: {e}")
            raise DispatchError(f"SMTP verify failed for {self.cfg.host}:{self.cfg.port}: {e}") from e
        logger.info(f"SMTP transport ready ({self.cfg.host}:{self.cfg.port})")

    async def notify(self, candidate: Candidate) -> None:
        message = build_notification(candidate, sender=self.cfg.sender, recipient=self.cfg.recipient)
        logger.info(f"[{candidate.source}] forwarding notification for message from {candidate.sender_display}")
        try:
            await aiosmtplib.send(
                message,
                hostname=self.cfg.host,
                port=self.cfg.port,
                username=self.cfg.username,
                password=self.cfg.password,
                use_tls=self.cfg.use_tls,
                timeout=self.cfg.timeout_seconds,
            )
        except (aiosmtplib.SMTPException, OSError) as e:
            raise DispatchError(f"SMTP send to {self.cfg.recipient} failed: {e}") from e

    async def close(self) -> None:
        return None

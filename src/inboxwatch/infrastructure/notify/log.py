from __future__ import annotations

from loguru import logger

from inboxwatch.application.ports.dispatcher import NotificationDispatcher
from inboxwatch.domain.entities.candidate import Candidate


class LogDispatcher(NotificationDispatcher):
    """Writes each detected message to the log instead of sending mail."""

    async def verify(self) -> None:
        return None

    async def notify(self, candidate: Candidate) -> None:
        logger.info(
            f"[{candidate.source}] detected message {candidate.message_id} "
            f'from {candidate.sender_display} with subject "{candidate.subject_display}"'
        )

    async def close(self) -> None:
        return None

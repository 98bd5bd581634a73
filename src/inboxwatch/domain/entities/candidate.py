from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

UNKNOWN_SENDER = "unknown sender"
NO_SUBJECT = "(no subject)"


@dataclass(frozen=True)
class Candidate:
    """A message seen in a backend listing, not yet confirmed delivered downstream."""
    message_id: str
    source: str
    sender_name: Optional[str] = None
    sender_address: Optional[str] = None
    subject: Optional[str] = None
    received_at: Optional[datetime] = None

    @property
    def sender_display(self) -> str:
        return self.sender_name or self.sender_address or UNKNOWN_SENDER

    @property
    def subject_display(self) -> str:
        return self.subject or NO_SUBJECT

    @property
    def uid(self) -> int:
        # IMAP ids are numeric UIDs; REST ids are opaque strings
        return int(self.message_id)

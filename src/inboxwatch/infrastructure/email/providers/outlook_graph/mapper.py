from __future__ import annotations
from datetime import datetime
from typing import Any, Mapping, Optional

from inboxwatch.domain.entities.candidate import Candidate


def _parse_graph_datetime(value: Optional[str]) -> Optional[datetime]:
    # Graph returns e.g. 2026-02-10T12:34:56Z
    if not value:
        return None
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


def graph_message_to_candidate(message: Mapping[str, Any], source: str) -> Candidate:
    email_address = ((message.get("from") or {}).get("emailAddress")) or {}
    return Candidate(
        message_id=message["id"],
        source=source,
        sender_name=email_address.get("name") or None,
        sender_address=email_address.get("address") or None,
        subject=message.get("subject") or None,
        received_at=_parse_graph_datetime(message.get("receivedDateTime")),
    )

from __future__ import annotations
from datetime import datetime, timezone
from email.utils import parseaddr
from typing import Any, Mapping, Optional

from inboxwatch.domain.entities.candidate import Candidate


def _header_map(headers: Optional[list[Mapping[str, Any]]]) -> dict[str, str]:
    out: dict[str, str] = {}
    for header in headers or []:
        name = (header.get("name") or "").lower()
        value = header.get("value")
        if name and value:
            out[name] = value
    return out


def _internal_date(value: Any) -> Optional[datetime]:
    # internalDate is epoch milliseconds, serialized as a string
    try:
        return datetime.fromtimestamp(int(value) / 1000, tz=timezone.utc)
    except (TypeError, ValueError):
        return None


def metadata_to_candidate(message: Mapping[str, Any], source: str) -> Candidate:
    """Map a ``users.messages.get(format="metadata")`` resource to a candidate."""
    headers = _header_map((message.get("payload") or {}).get("headers"))

    name, address = parseaddr(headers.get("from", ""))
    subject = headers.get("subject", "").strip() or None

    return Candidate(
        message_id=message["id"],
        source=source,
        sender_name=name or None,
        sender_address=address or None,
        subject=subject,
        received_at=_internal_date(message.get("internalDate")),
    )

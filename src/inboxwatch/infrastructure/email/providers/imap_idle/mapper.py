from __future__ import annotations
import re
from email import policy
from email.parser import BytesParser
from typing import Iterable, Optional, Union

from inboxwatch.domain.entities.candidate import Candidate

FETCH_START = re.compile(rb"^\d+ FETCH \(")
UID_FIELD = re.compile(rb"\bUID (\d+)")
UID_NEXT = re.compile(rb"\[UIDNEXT (\d+)\]")

Line = Union[bytes, bytearray, str]


def _as_bytes(line: Line) -> bytes:
    return line.encode() if isinstance(line, str) else bytes(line)


def parse_uid_next(lines: Iterable[Line]) -> Optional[int]:
    """Extract UIDNEXT from a SELECT response, if the server reported one."""
    for line in lines:
        m = UID_NEXT.search(_as_bytes(line))
        if m:
            return int(m.group(1))
    return None


def has_new_messages(pushed: Iterable[Line]) -> bool:
    """True if an IDLE push contains an EXISTS update."""
    return any(_as_bytes(line).rstrip().upper().endswith(b"EXISTS") for line in pushed)


def headers_to_candidate(uid: int, header_bytes: bytes, source: str) -> Candidate:
    em = BytesParser(policy=policy.default).parsebytes(header_bytes, headersonly=True)

    sender_name = sender_address = None
    try:
        from_header = em.get("From")
        addresses = from_header.addresses if from_header is not None else ()
        if addresses:
            sender_name = addresses[0].display_name or None
            sender_address = addresses[0].addr_spec or None
    except (AttributeError, IndexError, ValueError):
        sender_address = (str(em.get("From") or "").strip()) or None

    subject = (em.get("Subject") or "").strip() or None

    # Date parsing can be messy; leave it empty if absent/unparseable
    received_at = None
    try:
        date_header = em.get("Date")
        received_at = date_header.datetime if date_header is not None else None
    except (AttributeError, ValueError, TypeError):
        received_at = None

    return Candidate(
        message_id=str(uid),
        source=source,
        sender_name=sender_name,
        sender_address=sender_address,
        subject=subject,
        received_at=received_at,
    )


def parse_fetch_response(lines: Iterable[Line], source: str) -> list[Candidate]:
    """Map ``UID FETCH ... (UID BODY.PEEK[HEADER.FIELDS ...])`` response lines to candidates.

    Each message arrives as a ``N FETCH (...`` line, the header block as a
    literal (bytearray), and a closing line. Some servers put ``UID n``
    after the literal instead of before it.
    """
    out: list[Candidate] = []
    uid: Optional[int] = None
    header = b""
    in_message = False

    for line in lines:
        if isinstance(line, bytearray):
            header = bytes(line)
            continue

        raw = _as_bytes(line)
        if FETCH_START.match(raw):
            if in_message and uid is not None:
                out.append(headers_to_candidate(uid, header, source))
            in_message = True
            header = b""
            m = UID_FIELD.search(raw)
            uid = int(m.group(1)) if m else None
            continue

        if in_message and uid is None:
            m = UID_FIELD.search(raw)
            if m:
                uid = int(m.group(1))

    if in_message and uid is not None:
        out.append(headers_to_candidate(uid, header, source))
    return out

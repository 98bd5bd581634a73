from __future__ import annotations

from email.message import EmailMessage

from inboxwatch.domain.entities.candidate import Candidate


def notification_subject(candidate: Candidate) -> str:
    return f"New email received from {candidate.sender_display}"


def notification_text(candidate: Candidate) -> str:
    return (
        f"You have received a new email from {candidate.sender_display} "
        f'with the subject "{candidate.subject_display}".\n'
        f"Account: {candidate.source}"
    )


def build_notification(candidate: Candidate, sender: str, recipient: str) -> EmailMessage:
    msg = EmailMessage()
    msg["From"] = sender
    msg["To"] = recipient
    msg["Subject"] = notification_subject(candidate)
    msg.set_content(notification_text(candidate))
    return msg

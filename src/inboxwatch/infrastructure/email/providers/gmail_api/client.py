from __future__ import annotations
import asyncio
from dataclasses import dataclass
from typing import Any, Callable, Optional

from google.auth.exceptions import RefreshError
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from loguru import logger

from inboxwatch.application.ports.change_source import ListingSession
from inboxwatch.domain.entities.candidate import Candidate
from inboxwatch.domain.errors import AuthError, BackendListError
from inboxwatch.infrastructure.email.providers.gmail_api.mapper import metadata_to_candidate

GMAIL_READONLY_SCOPE = "https://www.googleapis.com/auth/gmail.readonly"
DEFAULT_TOKEN_URI = "https://oauth2.googleapis.com/token"
METADATA_HEADERS = ["Subject", "From", "Date"]


@dataclass(frozen=True)
class GmailSourceConfig:
    name: str
    client_id: str
    client_secret: str
    refresh_token: str
    cron_expression: str = "*/5 * * * *"
    query: str = "is:unread newer_than:1d"
    label_ids: tuple[str, ...] = ("INBOX", "UNREAD")
    max_results: int = 10
    processed_cache: int = 100
    token_uri: str = DEFAULT_TOKEN_URI


def _translate(error: Exception, action: str) -> Exception:
    if isinstance(error, RefreshError):
        return AuthError(f"Gmail token refresh failed: {error}")
    if isinstance(error, HttpError) and error.resp.status in (401, 403):
        return AuthError(f"Gmail {action} rejected ({error.resp.status}): {error}")
    return BackendListError(f"Gmail {action} failed: {error}")


class GmailApiSession(ListingSession):
    """Gmail REST API polled by label + search query.

    The google client is blocking, so every request runs in a worker
    thread. The OAuth2 refresh-token credentials renew their own access
    token on demand.
    """

    def __init__(self, cfg: GmailSourceConfig, service_factory: Optional[Callable[[], Any]] = None) -> None:
        self.cfg = cfg
        self._service_factory = service_factory or self._build_service
        self._service: Any = None

    def _build_service(self) -> Any:
        creds = Credentials(
            token=None,
            refresh_token=self.cfg.refresh_token,
            client_id=self.cfg.client_id,
            client_secret=self.cfg.client_secret,
            token_uri=self.cfg.token_uri,
            scopes=[GMAIL_READONLY_SCOPE],
        )
        return build("gmail", "v1", credentials=creds, cache_discovery=False)

    async def connect(self) -> None:
        if self._service is None:
            self._service = await asyncio.to_thread(self._service_factory)

    async def list_matching(self, page_cap: int) -> list[Candidate]:
        await self.connect()
        request = self._service.users().messages().list(
            userId="me",
            labelIds=list(self.cfg.label_ids),
            q=self.cfg.query,
            maxResults=page_cap,
        )
        try:
            response = await asyncio.to_thread(request.execute)
        except (RefreshError, HttpError) as e:
            raise _translate(e, "list messages") from e

        entries = response.get("messages") or []
        return [
            Candidate(message_id=entry["id"], source=self.cfg.name)
            for entry in entries
            if entry.get("id")
        ]

    async def describe(self, candidate: Candidate) -> Candidate:
        request = self._service.users().messages().get(
            userId="me",
            id=candidate.message_id,
            format="metadata",
            metadataHeaders=METADATA_HEADERS,
        )
        try:
            result = await asyncio.to_thread(request.execute)
        except (RefreshError, HttpError) as e:
            raise _translate(e, f"get message {candidate.message_id}") from e
        return metadata_to_candidate(result, self.cfg.name)

    async def close(self) -> None:
        service, self._service = self._service, None
        if service is not None and hasattr(service, "close"):
            try:
                service.close()
            except Exception as e:
                logger.debug(f"[{self.cfg.name}] error closing Gmail client: {e}")

from __future__ import annotations
import time
from dataclasses import dataclass
from typing import Callable, Optional
from urllib.parse import quote

import httpx

from inboxwatch.application.ports.change_source import ListingSession
from inboxwatch.application.state.token_cache import TokenCache
from inboxwatch.domain.entities.candidate import Candidate
from inboxwatch.domain.errors import AuthError, BackendListError
from inboxwatch.infrastructure.email.providers.outlook_graph.auth import (
    GraphAppCredentials,
    GraphTokenExchange,
)
from inboxwatch.infrastructure.email.providers.outlook_graph.mapper import graph_message_to_candidate

GRAPH_BASE_URL = "https://graph.microsoft.com/v1.0"
SELECT_FIELDS = "id,subject,from,receivedDateTime"


@dataclass(frozen=True)
class OutlookSourceConfig:
    name: str
    tenant_id: str
    client_id: str
    client_secret: str
    # App-only auth must address /users/{id|userPrincipalName}, not /me
    user_id: str
    folder_id: str = "inbox"
    cron_expression: str = "*/5 * * * *"
    filter: str = "isRead eq false"
    top: int = 10
    processed_cache: int = 100
    http_timeout_seconds: float = 30.0

    @property
    def credentials(self) -> GraphAppCredentials:
        return GraphAppCredentials(
            tenant_id=self.tenant_id,
            client_id=self.client_id,
            client_secret=self.client_secret,
        )

    @property
    def messages_url(self) -> str:
        return (
            f"{GRAPH_BASE_URL}/users/{quote(self.user_id, safe='')}"
            f"/mailFolders/{quote(self.folder_id, safe='')}/messages"
        )


class OutlookGraphSession(ListingSession):
    """Microsoft Graph mail folder polled for unread messages with an app-only bearer token."""

    def __init__(
        self,
        cfg: OutlookSourceConfig,
        http: Optional[httpx.AsyncClient] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.cfg = cfg
        self._owns_http = http is None
        self.http = http or httpx.AsyncClient(timeout=cfg.http_timeout_seconds)
        self.token_cache = TokenCache(
            GraphTokenExchange(cfg.credentials, self.http),
            clock=clock,
            name=cfg.name,
        )

    async def connect(self) -> None:
        # Token is fetched lazily on the first poll
        return None

    async def list_matching(self, page_cap: int) -> list[Candidate]:
        token = await self.token_cache.get_token()

        params = {
            "$top": str(page_cap),
            "$orderby": "receivedDateTime desc",
            "$select": SELECT_FIELDS,
            "$filter": self.cfg.filter,
        }
        headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/json",
        }
        try:
            response = await self.http.get(self.cfg.messages_url, params=params, headers=headers)
        except httpx.HTTPError as e:
            raise BackendListError(f"Graph list messages failed: {e}") from e

        if response.status_code == 401:
            self.token_cache.invalidate()
            raise AuthError(f"Graph rejected the access token: {response.text[:200]}")
        if response.status_code == 403:
            raise AuthError(f"Graph denied access to {self.cfg.user_id}: {response.text[:200]}")
        if not response.is_success:
            raise BackendListError(f"Graph list messages failed ({response.status_code}): {response.text[:200]}")

        body = response.json()
        return [
            graph_message_to_candidate(message, self.cfg.name)
            for message in body.get("value") or []
            if message.get("id")
        ]

    async def describe(self, candidate: Candidate) -> Candidate:
        # The listing already carries sender and subject
        return candidate

    async def close(self) -> None:
        if self._owns_http:
            await self.http.aclose()

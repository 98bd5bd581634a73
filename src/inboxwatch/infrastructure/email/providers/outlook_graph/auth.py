from __future__ import annotations
from dataclasses import dataclass
from urllib.parse import quote

import httpx

from inboxwatch.domain.errors import AuthError

GRAPH_SCOPE = "https://graph.microsoft.com/.default"
DEFAULT_EXPIRES_IN_SECONDS = 3600


@dataclass(frozen=True)
class GraphAppCredentials:
    """App-only (client credentials) registration in an Entra ID tenant."""
    tenant_id: str
    client_id: str
    client_secret: str

    @property
    def token_url(self) -> str:
        return f"https://login.microsoftonline.com/{quote(self.tenant_id, safe='')}/oauth2/v2.0/token"


class GraphTokenExchange:
    """
    Performs the client-credentials exchange. Caching lives in TokenCache;
    this class only talks to the identity provider.
    """

    def __init__(self, creds: GraphAppCredentials, http: httpx.AsyncClient) -> None:
        self.creds = creds
        self.http = http

    async def __call__(self) -> tuple[str, float]:
        form = {
            "client_id": self.creds.client_id,
            "client_secret": self.creds.client_secret,
            "grant_type": "client_credentials",
            "scope": GRAPH_SCOPE,
        }
        try:
            response = await self.http.post(self.creds.token_url, data=form)
        except httpx.HTTPError as e:
            raise AuthError(f"Graph token request failed: {e}") from e

        if not response.is_success:
            raise AuthError(f"Graph token request failed ({response.status_code}): {response.text[:200]}")

        body = response.json()
        access_token = body.get("access_token")
        if not access_token:
            raise AuthError("Graph token response missing access_token")

        expires_in = body.get("expires_in")
        if isinstance(expires_in, bool) or not isinstance(expires_in, (int, float)):
            expires_in = DEFAULT_EXPIRES_IN_SECONDS
        return access_token, float(expires_in)

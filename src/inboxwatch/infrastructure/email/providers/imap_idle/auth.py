from __future__ import annotations
from dataclasses import dataclass

from aioimaplib import aioimaplib

from inboxwatch.domain.errors import AuthError, BackendListError

CONNECT_TIMEOUT_SECONDS = 30.0


@dataclass(frozen=True)
class ImapCredentials:
    """
    Represents credentials for a single IMAP mailbox.
    """
    host: str
    port: int
    user: str
    password: str


class ImapAuthenticator:
    """
    Responsible ONLY for establishing an authenticated IMAP connection.
    No folder logic, no fetching, no parsing.
    """

    def __init__(self, creds: ImapCredentials) -> None:
        self.creds = creds

    async def login(self) -> aioimaplib.IMAP4_SSL:
        """
        Returns an authenticated IMAP4_SSL connection (IMAPS, no STARTTLS).
        """
        conn = aioimaplib.IMAP4_SSL(
            host=self.creds.host,
            port=self.creds.port,
            timeout=CONNECT_TIMEOUT_SECONDS,
        )
        try:
            await conn.wait_hello_from_server()
        except (OSError, TimeoutError) as e:
            raise BackendListError(f"Cannot reach {self.creds.host}:{self.creds.port}: {e}") from e

        response = await conn.login(self.creds.user, self.creds.password)
        if response.result != "OK":
            raise AuthError(f"IMAP login failed for {self.creds.user}: {response.result}")
        return conn

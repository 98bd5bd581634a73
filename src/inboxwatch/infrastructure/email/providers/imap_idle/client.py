from __future__ import annotations
import asyncio
from dataclasses import dataclass
from typing import Optional

from aioimaplib import aioimaplib
from loguru import logger

from inboxwatch.application.ports.change_source import ChangeCallback, CursorSession
from inboxwatch.domain.entities.candidate import Candidate
from inboxwatch.domain.errors import BackendListError
from inboxwatch.infrastructure.email.providers.imap_idle.auth import (
    ImapAuthenticator,
    ImapCredentials,
)
from inboxwatch.infrastructure.email.providers.imap_idle.mapper import (
    has_new_messages,
    parse_fetch_response,
    parse_uid_next,
)

FETCH_ITEMS = "(UID BODY.PEEK[HEADER.FIELDS (FROM SUBJECT DATE)])"
IDLE_DONE_TIMEOUT_SECONDS = 30.0


@dataclass(frozen=True)
class ImapSourceConfig:
    name: str
    host: str
    port: int
    user: str
    password: str
    mailbox: str = "INBOX"
    fetch_limit: int = 50
    idle_timeout_seconds: float = 29 * 60
    reconnect_seconds: float = 30.0

    @property
    def credentials(self) -> ImapCredentials:
        return ImapCredentials(host=self.host, port=self.port, user=self.user, password=self.password)


class ImapIdleSession(CursorSession):
    """IMAP mailbox watched with IDLE.

    Uses two connections: one parked in IDLE that only turns EXISTS pushes
    into change signals, and one that runs the UID FETCH for scans. The IDLE
    connection is re-established after errors; the fetch connection is
    reopened lazily on the next scan.
    """

    def __init__(self, cfg: ImapSourceConfig, authenticator: Optional[ImapAuthenticator] = None) -> None:
        self.cfg = cfg
        self.authenticator = authenticator or ImapAuthenticator(cfg.credentials)
        self._fetch_conn: Optional[aioimaplib.IMAP4_SSL] = None
        self._idle_conn: Optional[aioimaplib.IMAP4_SSL] = None
        self._idle_task: Optional[asyncio.Task] = None
        self._closing = False

    async def _open(self) -> tuple[aioimaplib.IMAP4_SSL, Optional[int]]:
        conn = await self.authenticator.login()
        response = await conn.select(self.cfg.mailbox)
        if response.result != "OK":
            await self._logout(conn)
            raise BackendListError(f"Failed to select mailbox {self.cfg.mailbox}")
        return conn, parse_uid_next(response.lines)

    async def connect(self) -> int:
        self._fetch_conn, uid_next = await self._open()
        logger.info(f"[{self.cfg.name}] connected to {self.cfg.host}, mailbox {self.cfg.mailbox}")
        return uid_next or 0

    async def list_since(self, cursor: int) -> list[Candidate]:
        if self._fetch_conn is None:
            self._fetch_conn, _ = await self._open()
        conn = self._fetch_conn

        try:
            # Lets the server announce messages that arrived since the last command
            await conn.noop()
            response = await conn.uid("fetch", f"{cursor + 1}:*", FETCH_ITEMS)
        except Exception as e:
            self._fetch_conn = None
            raise BackendListError(f"UID FETCH failed: {e}") from e

        if response.result != "OK":
            raise BackendListError(f"UID FETCH failed: {response.result}")

        # "n:*" always matches the newest message, even when it is <= cursor
        fresh = [c for c in parse_fetch_response(response.lines, self.cfg.name) if c.uid > cursor]
        fresh.sort(key=lambda c: c.uid)
        return fresh[: self.cfg.fetch_limit]

    async def subscribe(self, on_change: ChangeCallback) -> None:
        self._closing = False
        self._idle_task = asyncio.create_task(self._idle_loop(on_change), name=f"idle:{self.cfg.name}")

    async def unsubscribe(self) -> None:
        self._closing = True
        task, self._idle_task = self._idle_task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def close(self) -> None:
        await self.unsubscribe()
        conn, self._fetch_conn = self._fetch_conn, None
        if conn is not None:
            await self._logout(conn)

    async def _idle_loop(self, on_change: ChangeCallback) -> None:
        while not self._closing:
            try:
                conn, _ = await self._open()
                self._idle_conn = conn
                if not conn.has_capability("IDLE"):
                    logger.error(f"[{self.cfg.name}] server does not support IDLE, change signals disabled")
                    return
                await self._idle(conn, on_change)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                if self._closing:
                    break
                logger.error(f"[{self.cfg.name}] IMAP error: {e}")
            finally:
                conn, self._idle_conn = self._idle_conn, None
                if conn is not None:
                    await self._logout(conn)

            if not self._closing:
                logger.info(f"[{self.cfg.name}] reconnecting in {self.cfg.reconnect_seconds:.0f}s")
                await asyncio.sleep(self.cfg.reconnect_seconds)

    async def _idle(self, conn: aioimaplib.IMAP4_SSL, on_change: ChangeCallback) -> None:
        while not self._closing:
            idle = await conn.idle_start(timeout=self.cfg.idle_timeout_seconds)
            while conn.has_pending_idle():
                try:
                    pushed = await conn.wait_server_push()
                except asyncio.TimeoutError:
                    pushed = aioimaplib.STOP_WAIT_SERVER_PUSH

                if pushed == aioimaplib.STOP_WAIT_SERVER_PUSH:
                    conn.idle_done()
                    await asyncio.wait_for(idle, IDLE_DONE_TIMEOUT_SECONDS)
                elif has_new_messages(pushed):
                    on_change()

    async def _logout(self, conn: aioimaplib.IMAP4_SSL) -> None:
        try:
            await conn.logout()
        except Exception as e:
            if not self._closing:
                logger.warning(f"[{self.cfg.name}] failed to close IMAP connection: {e}")

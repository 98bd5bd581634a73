"""Turn Settings into configured sources, a dispatcher and the watcher service."""

from __future__ import annotations

from typing import Callable, Optional

from loguru import logger

from inboxwatch.application.ports.dispatcher import NotificationDispatcher
from inboxwatch.application.sources.base import ChangeSource
from inboxwatch.application.sources.cursor_source import CursorChangeSource
from inboxwatch.application.sources.polled_source import PolledChangeSource
from inboxwatch.application.use_cases.watch_mailboxes import WatcherService
from inboxwatch.domain.errors import ConfigError
from inboxwatch.infrastructure.email.providers.gmail_api.client import GmailApiSession, GmailSourceConfig
from inboxwatch.infrastructure.email.providers.imap_idle.client import ImapIdleSession, ImapSourceConfig
from inboxwatch.infrastructure.email.providers.outlook_graph.client import (
    OutlookGraphSession,
    OutlookSourceConfig,
)
from inboxwatch.infrastructure.notify import LogDispatcher, SmtpConfig, SmtpDispatcher
from inboxwatch.infrastructure.scheduling.scheduler import Scheduler, parse_cron
from inboxwatch.infrastructure.settings import Settings, secret_value


def _require(source: str, **values: Optional[str]) -> None:
    missing = [name.upper() for name, value in values.items() if not value]
    if missing:
        raise ConfigError(f"{source} is enabled but missing {', '.join(missing)}")


def imap_config_from_settings(settings: Settings) -> ImapSourceConfig:
    password = secret_value(settings.imap_password)
    _require("imap", imap_user=settings.imap_user, imap_password=password)
    return ImapSourceConfig(
        name="imap",
        host=settings.imap_host,
        port=settings.imap_port,
        user=settings.imap_user,
        password=password,
        mailbox=settings.imap_mailbox,
        fetch_limit=settings.imap_fetch_limit,
        idle_timeout_seconds=settings.imap_idle_timeout_seconds,
        reconnect_seconds=settings.imap_reconnect_seconds,
    )


def gmail_config_from_settings(settings: Settings) -> GmailSourceConfig:
    client_secret = secret_value(settings.google_client_secret)
    refresh_token = secret_value(settings.google_refresh_token)
    _require(
        "gmail",
        google_client_id=settings.google_client_id,
        google_client_secret=client_secret,
        google_refresh_token=refresh_token,
    )
    parse_cron(settings.gmail_cron_expression, "gmail")
    return GmailSourceConfig(
        name="gmail",
        client_id=settings.google_client_id,
        client_secret=client_secret,
        refresh_token=refresh_token,
        cron_expression=settings.gmail_cron_expression,
        query=settings.gmail_query,
        label_ids=settings.gmail_label_ids,
        max_results=settings.gmail_max_results,
        processed_cache=settings.gmail_processed_cache,
        token_uri=settings.google_token_uri,
    )


def outlook_config_from_settings(settings: Settings) -> OutlookSourceConfig:
    client_secret = secret_value(settings.outlook_client_secret)
    _require(
        "outlook",
        outlook_tenant_id=settings.outlook_tenant_id,
        outlook_client_id=settings.outlook_client_id,
        outlook_client_secret=client_secret,
        outlook_user_id=settings.outlook_user_id,
    )
    parse_cron(settings.outlook_cron_expression, "outlook")
    return OutlookSourceConfig(
        name="outlook",
        tenant_id=settings.outlook_tenant_id,
        client_id=settings.outlook_client_id,
        client_secret=client_secret,
        user_id=settings.outlook_user_id,
        folder_id=settings.outlook_folder_id,
        cron_expression=settings.outlook_cron_expression,
        filter=settings.outlook_filter,
        top=settings.outlook_top,
        processed_cache=settings.outlook_processed_cache,
        http_timeout_seconds=settings.outlook_http_timeout_seconds,
    )


def build_imap_source(settings: Settings, dispatcher: NotificationDispatcher) -> ChangeSource:
    cfg = imap_config_from_settings(settings)
    return CursorChangeSource(cfg.name, ImapIdleSession(cfg), dispatcher, page_size=cfg.fetch_limit)


def build_gmail_source(settings: Settings, dispatcher: NotificationDispatcher) -> ChangeSource:
    cfg = gmail_config_from_settings(settings)
    return PolledChangeSource(
        cfg.name,
        GmailApiSession(cfg),
        dispatcher,
        schedule=cfg.cron_expression,
        page_cap=cfg.max_results,
        cache_capacity=cfg.processed_cache,
    )


def build_outlook_source(settings: Settings, dispatcher: NotificationDispatcher) -> ChangeSource:
    cfg = outlook_config_from_settings(settings)
    return PolledChangeSource(
        cfg.name,
        OutlookGraphSession(cfg),
        dispatcher,
        schedule=cfg.cron_expression,
        page_cap=cfg.top,
        cache_capacity=cfg.processed_cache,
    )


SourceBuilder = Callable[[Settings, NotificationDispatcher], ChangeSource]

SOURCE_BUILDERS: dict[str, tuple[str, SourceBuilder]] = {
    "imap": ("imap_enabled", build_imap_source),
    "gmail": ("gmail_enabled", build_gmail_source),
    "outlook": ("outlook_enabled", build_outlook_source),
}


def build_dispatcher(settings: Settings) -> NotificationDispatcher:
    if settings.notify_mode == "log":
        logger.info("Notifications go to the log (NOTIFY_MODE=log)")
        return LogDispatcher()

    password = secret_value(settings.smtp_password) or secret_value(settings.imap_password)
    _require(
        "smtp notifications",
        notify_recipient=settings.notify_recipient,
        smtp_username=settings.smtp_login,
        smtp_password=password,
    )
    return SmtpDispatcher(
        SmtpConfig(
            host=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_login,
            password=password,
            recipient=settings.notify_recipient,
            sender=settings.notify_from or settings.smtp_login,
            use_tls=settings.smtp_use_tls,
        )
    )


def build_sources(settings: Settings, dispatcher: NotificationDispatcher) -> list[ChangeSource]:
    """Build every enabled source. A misconfigured source is logged and skipped alone."""
    sources: list[ChangeSource] = []
    for name, (flag, builder) in SOURCE_BUILDERS.items():
        if not getattr(settings, flag):
            logger.info(f"[{name}] disabled ({flag.upper()}=false)")
            continue
        try:
            sources.append(builder(settings, dispatcher))
        except ConfigError as e:
            logger.error(f"[{name}] not started: {e}")
    return sources


def build_watcher(settings: Settings, scheduler: Optional[Scheduler] = None) -> WatcherService:
    """Assemble the service. Raises ConfigError when the dispatcher cannot be configured."""
    dispatcher = build_dispatcher(settings)
    sources = build_sources(settings, dispatcher)
    return WatcherService(sources, dispatcher, scheduler=scheduler)

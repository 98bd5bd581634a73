"""Headless mailbox watcher - runs every configured source until SIGINT/SIGTERM."""

from __future__ import annotations

import argparse
import asyncio
import signal

from loguru import logger

from inboxwatch.application.use_cases.watch_mailboxes import WatcherService
from inboxwatch.domain.errors import ConfigError, DispatchError
from inboxwatch.infrastructure import build_watcher, configure_logging, get_settings

STOP_SIGNALS = (signal.SIGTERM, signal.SIGINT)


class WatcherRunner:
    """Runs one WatcherService on the current event loop until a stop signal."""

    def __init__(self, service: WatcherService) -> None:
        self.service = service
        self._stop = asyncio.Event()

    def _handle_shutdown(self, signum: int) -> None:
        logger.info(f"Received signal {signum}, shutting down...")
        self._stop.set()

    def request_stop(self) -> None:
        self._stop.set()

    async def run(self) -> int:
        loop = asyncio.get_running_loop()
        for signum in STOP_SIGNALS:
            loop.add_signal_handler(signum, self._handle_shutdown, signum)
        try:
            return await self._run()
        finally:
            for signum in STOP_SIGNALS:
                loop.remove_signal_handler(signum)

    async def _run(self) -> int:
        try:
            await self.service.start()
        except DispatchError as e:
            logger.error(f"Notification transport unavailable, nothing could be delivered: {e}")
            await self.service.stop()
            return 1

        if not self.service.active:
            logger.error("No source started, exiting")
            await self.service.stop()
            return 1

        await self._stop.wait()
        await self.service.stop()
        self._log_stats()
        return 0

    def _log_stats(self) -> None:
        logger.info("=" * 60)
        for row in self.service.snapshot():
            logger.info(
                f"  {row['name']} ({row['kind']}): {row['scans']} scans, "
                f"{row['notified']} notified, {row['failures']} failed, "
                f"{row['dropped_triggers']} dropped"
            )
        logger.info("=" * 60)


def main() -> int:
    """Entry point for the mailbox watcher."""
    parser = argparse.ArgumentParser(description="Watch mailboxes and notify on new mail")
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    args = parser.parse_args()

    settings = get_settings()
    configure_logging(args.log_level or settings.log_level, settings.log_json)

    logger.info("=" * 60)
    logger.info(f"{settings.app_name} v{settings.app_version}")
    logger.info("=" * 60)

    try:
        service = build_watcher(settings)
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        return 1

    if not service.sources:
        logger.error("No sources configured! Set IMAP_ENABLED, GMAIL_ENABLED or OUTLOOK_ENABLED")
        return 1

    return asyncio.run(WatcherRunner(service).run())


if __name__ == "__main__":
    raise SystemExit(main())

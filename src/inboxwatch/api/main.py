"""FastAPI application entry point."""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from loguru import logger

from inboxwatch.application.use_cases.watch_mailboxes import WatcherService
from inboxwatch.infrastructure import build_watcher, configure_logging, get_settings


def create_app(watcher: Optional[WatcherService] = None) -> FastAPI:
    """Create and configure the FastAPI application.

    The lifespan starts the watcher with the app and stops it on shutdown.
    A prebuilt watcher can be passed in; otherwise one is built from settings.
    """
    settings = get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Starting {settings.app_name} v{settings.app_version}")
        logger.info(f"Environment: {settings.environment}")

        service = watcher or build_watcher(settings)
        app.state.watcher = service
        await service.start()

        yield

        logger.info("Shutting down...")
        await service.stop()
        logger.info("Shutdown complete")

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Watches mailboxes and notifies once per new message",
        lifespan=lifespan,
    )

    from inboxwatch.api.routes import router

    app.include_router(router)
    return app


def run() -> None:
    """Serve the status API with uvicorn."""
    import uvicorn

    settings = get_settings()
    configure_logging(settings.log_level, settings.log_json)
    uvicorn.run(create_app(), host=settings.api_host, port=settings.api_port, log_config=None)


# Create app instance
app = create_app()

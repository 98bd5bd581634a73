"""API routes for the inbox watcher status service."""

from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field

from inboxwatch.application.use_cases.watch_mailboxes import WatcherService
from inboxwatch.infrastructure import get_settings

router = APIRouter()


# ============================================================================
# Response Models
# ============================================================================


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    timestamp: str
    version: str


class SourceStatus(BaseModel):
    """Snapshot of one watched source."""

    name: str
    kind: str
    active: bool = True
    running: bool
    scans: int
    dropped_triggers: int
    scans_completed: int
    scans_failed: int
    notified: int
    failures: int
    last_scan_at: str | None = None
    last_error: str | None = None
    start_error: str | None = None
    cursor: int | None = Field(None, description="Push sources: last processed UID")
    schedule: str | None = Field(None, description="Polled sources: cron expression")
    cache_size: int | None = None
    cache_capacity: int | None = None
    token_expires_at: str | None = None


class ScanResponse(BaseModel):
    """Result of a manual scan request."""

    source: str
    started: bool


def get_watcher(request: Request) -> WatcherService:
    watcher = getattr(request.app.state, "watcher", None)
    if watcher is None:
        raise HTTPException(status_code=503, detail="watcher not started")
    return watcher


# ============================================================================
# Endpoints
# ============================================================================


@router.get("/health", response_model=HealthResponse, tags=["health"])
async def health_check() -> HealthResponse:
    """Basic health check endpoint."""
    settings = get_settings()
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc).isoformat(),
        version=settings.app_version,
    )


@router.get("/sources", response_model=list[SourceStatus], tags=["sources"])
async def list_sources(request: Request) -> list[dict[str, Any]]:
    """Per-source counters, cursor and cache state."""
    return get_watcher(request).snapshot()


@router.post("/sources/{name}/scan", response_model=ScanResponse, tags=["sources"])
async def scan_source(name: str, request: Request) -> ScanResponse:
    """Run one guarded scan now. ``started`` is false when a scan was already running."""
    watcher = get_watcher(request)
    if watcher.get(name) is None:
        raise HTTPException(status_code=404, detail=f"unknown source: {name}")
    started = await watcher.trigger(name)
    return ScanResponse(source=name, started=started)

"""Admin API endpoints with simple token auth."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from pydantic import BaseModel, Field

from photobooth_gallery.domain.sessions import ReconcileOutcome
from photobooth_gallery.services.reconciler import (
    PersistenceError,
    SessionNotFoundError,
)

if TYPE_CHECKING:
    from photobooth_gallery.containers import AppContainer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


class WatchFolderRequest(BaseModel):
    """Request body for changing the watched folder."""

    path: str = Field(min_length=1)


def _get_admin_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.admin_token


async def require_admin(
    x_admin_token: str | None = Header(default=None),
    admin_token: str = Depends(_get_admin_token),
) -> None:
    """Ensure requests include a valid admin token."""
    if not x_admin_token or x_admin_token != admin_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


@router.post(
    "/sessions/{session_id}/scan-media", dependencies=[Depends(require_admin)]
)
async def scan_media(session_id: str, request: Request) -> dict[str, object]:
    """Re-run reconciliation for one session folder."""
    container: AppContainer = request.app.state.container
    watch_root = (
        container.supervisor.state.watch_root
        or container.watch_root_source.get_watch_root()
    )
    try:
        result = await container.reconciler.rescan(session_id, watch_root)
    except SessionNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Session not found"
        ) from exc
    except PersistenceError as exc:
        logger.exception("Rescan failed for session %s", session_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)
        ) from exc
    if result.outcome is ReconcileOutcome.MISSING_FOLDER:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Session folder not found"
        )
    return result.to_dict()


@router.post("/sessions/{session_id}/gallery", dependencies=[Depends(require_admin)])
async def regenerate_gallery(session_id: str, request: Request) -> dict[str, str]:
    """Rewrite a session's static gallery page from stored photos."""
    container: AppContainer = request.app.state.container
    try:
        page = container.reconciler.render_gallery(session_id)
    except SessionNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Session not found"
        ) from exc
    return {"session_id": session_id, "gallery_page": str(page)}


@router.put("/watch-folder", dependencies=[Depends(require_admin)])
async def update_watch_folder(
    payload: WatchFolderRequest, request: Request
) -> dict[str, object]:
    """Persist a new watch folder and restart the watcher against it."""
    container: AppContainer = request.app.state.container
    new_root = Path(payload.path)
    try:
        container.watch_root_source.set_watch_root(new_root)
    except PersistenceError as exc:
        logger.exception("Failed to store watch folder %s", new_root)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)
        ) from exc
    resolved = await container.supervisor.reload(new_root)
    summary = container.supervisor.state.sweep_summary
    return {
        "watch_root": str(resolved),
        "sweep": summary.to_dict() if summary else None,
    }


@router.get("/watcher", dependencies=[Depends(require_admin)])
async def watcher_status(request: Request) -> dict[str, object]:
    """Return the watcher's root, pending folders and last sweep."""
    container: AppContainer = request.app.state.container
    return container.supervisor.status()


@router.post("/cleanup", dependencies=[Depends(require_admin)])
async def run_cleanup(request: Request) -> dict[str, object]:
    """Run one retention pass immediately."""
    container: AppContainer = request.app.state.container
    report = await asyncio.to_thread(container.retention_service.run_cleanup)
    return report.to_dict()

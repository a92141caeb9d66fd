"""Folder-to-session reconciliation."""

import asyncio
import logging
import os
import re
import secrets
import shutil
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Protocol
from urllib.parse import quote

from photobooth_gallery.domain.sessions import (
    PhotoDraft,
    PhotoRecord,
    ReconcileOutcome,
    ReconciliationResult,
    SessionRecord,
    SessionStatus,
    derive_session_id,
)
from photobooth_gallery.services.media import MediaProcessor, TransformedMedia
from photobooth_gallery.services.scanner import TreeScanner

logger = logging.getLogger(__name__)

QR_FILENAME = "_qrcode.png"
GALLERY_PAGE = "index.html"
STAGING_DIR = ".staging"
_PHOTO_FILE_RE = re.compile(r"^photo_(\d+)$")


class PersistenceError(RuntimeError):
    """Raised when the session store rejects a write."""


class SessionNotFoundError(LookupError):
    """Raised when a session id has no stored session."""


class SessionRepository(Protocol):
    """Persistence interface for sessions."""

    def get_session(self, session_id: str) -> SessionRecord | None:
        """Return a session by id, if present."""

    def create_session(
        self,
        session_id: str,
        folder_name: str,
        access_token: str,
        created_at: datetime,
    ) -> SessionRecord:
        """Create an active session and return it."""

    def list_sessions(self, statuses: list[SessionStatus]) -> list[SessionRecord]:
        """Return sessions with one of the given statuses, oldest first."""

    def mark_deleted(self, session_id: str, deleted_at: datetime) -> None:
        """Soft-delete a session."""


class PhotoRepository(Protocol):
    """Persistence interface for session photos."""

    def replace_photos(
        self, session_id: str, photos: list[PhotoDraft], reactivate: bool
    ) -> int:
        """Atomically replace a session's photos and return the stored count.

        When ``reactivate`` is set, the session status flips back to active
        in the same transaction.
        """

    def list_photos(self, session_id: str) -> list[PhotoRecord]:
        """Return a session's photos ordered by number."""

    def count_photos_by_session(self, session_ids: list[str]) -> dict[str, int]:
        """Return photo counts keyed by session id."""


class QrEncoder(Protocol):
    """Interface for QR code rendering."""

    def encode(self, url: str) -> bytes:
        """Return PNG bytes encoding the URL."""


class GalleryRenderer(Protocol):
    """Interface for static gallery page rendering."""

    def render(self, session: SessionRecord, photos: Sequence[PhotoRecord]) -> str:
        """Return the gallery page HTML."""


@dataclass
class SessionReconciler:
    """Derives a session's photo set from the files in its folder."""

    session_repository: SessionRepository
    photo_repository: PhotoRepository
    media_processor: MediaProcessor
    qr_encoder: QrEncoder
    gallery_renderer: GalleryRenderer
    scanner: TreeScanner
    gallery_root: Path
    public_base_url: str
    _locks: dict[str, asyncio.Lock] = field(default_factory=dict, init=False)
    _lock_users: dict[str, int] = field(default_factory=dict, init=False)

    async def reconcile(
        self,
        folder_name: str,
        folder_path: Path,
        candidate_files: list[str],
        *,
        allow_revival: bool = False,
    ) -> ReconciliationResult:
        """Create or refresh the session for a folder.

        Per-file transform failures drop the file; a failing photo
        transaction raises ``PersistenceError`` and keeps the previous set.
        A soft-deleted session is only revived when its folder holds media
        changed after the deletion, or when ``allow_revival`` is set.
        """
        session_id = derive_session_id(folder_name)
        lock = self._locks.setdefault(session_id, asyncio.Lock())
        self._lock_users[session_id] = self._lock_users.get(session_id, 0) + 1
        try:
            async with lock:
                return await self._reconcile(
                    session_id,
                    folder_name,
                    Path(folder_path),
                    candidate_files,
                    allow_revival,
                )
        finally:
            self._lock_users[session_id] -= 1
            if not self._lock_users[session_id]:
                del self._lock_users[session_id]
                del self._locks[session_id]

    async def rescan(self, session_id: str, watch_root: Path) -> ReconciliationResult:
        """Re-run reconciliation for a stored session on operator request."""
        session = self.session_repository.get_session(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        folder_path = Path(watch_root) / session.folder_name
        scan = self.scanner.scan(folder_path)
        logger.info(
            "Manual rescan requested for %s (%d files)",
            session.folder_name,
            scan.total_files,
        )
        return await self.reconcile(
            session.folder_name, folder_path, scan.files, allow_revival=True
        )

    def render_gallery(self, session_id: str) -> Path:
        """Regenerate the gallery page from stored photos."""
        session = self.session_repository.get_session(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        photos = self.photo_repository.list_photos(session_id)
        return self._write_gallery(session, photos)

    async def _reconcile(
        self,
        session_id: str,
        folder_name: str,
        folder_path: Path,
        candidate_files: list[str],
        allow_revival: bool,
    ) -> ReconciliationResult:
        if not folder_path.is_dir():
            logger.warning("Session folder missing: %s", folder_path)
            return ReconciliationResult(
                session_id=session_id,
                folder_name=folder_name,
                outcome=ReconcileOutcome.MISSING_FOLDER,
                files_found=0,
            )

        fresh = self.scanner.scan(folder_path)
        if fresh.files != sorted(candidate_files):
            logger.info(
                "File set changed in %s (%d -> %d files), using latest scan",
                folder_name,
                len(candidate_files),
                fresh.total_files,
            )
        files = fresh.files
        if not fresh.is_valid:
            logger.info(
                "Skipping %s: %d files < %d minimum",
                folder_name,
                fresh.total_files,
                self.scanner.min_files,
            )
            return ReconciliationResult(
                session_id=session_id,
                folder_name=folder_name,
                outcome=ReconcileOutcome.BELOW_THRESHOLD,
                files_found=fresh.total_files,
            )

        session = self.session_repository.get_session(session_id)
        if (
            session is not None
            and session.status is SessionStatus.DELETED
            and session.deleted_at is not None
            and not allow_revival
            and not _changed_since(folder_path, files, session.deleted_at)
        ):
            logger.info("Skipping %s: deleted and unchanged since", folder_name)
            return ReconciliationResult(
                session_id=session_id,
                folder_name=folder_name,
                outcome=ReconcileOutcome.RETIRED,
                files_found=len(files),
            )
        created = session is None
        if session is None:
            session = self._create_session(session_id, folder_name, folder_path)
        else:
            logger.info("Re-processing existing session %s", session_id)
        resurrected = session.status is SessionStatus.DELETED

        gallery_dir = self.gallery_root / session_id
        staging = gallery_dir / STAGING_DIR
        shutil.rmtree(staging, ignore_errors=True)
        staging.mkdir(parents=True, exist_ok=True)
        try:
            transformed, dropped = await self.media_processor.process_all(
                folder_path, files, staging
            )
            drafts, moves = _number_photos(folder_path, gallery_dir, transformed)
            persisted = self.photo_repository.replace_photos(
                session_id, drafts, reactivate=not created
            )
            for staged, final in moves:
                os.replace(staged, final)
        finally:
            shutil.rmtree(staging, ignore_errors=True)

        _prune_stale_files(gallery_dir, {final for _, final in moves})
        stored = self.session_repository.get_session(session_id) or session
        self._write_gallery(stored, [draft.for_session(session_id) for draft in drafts])
        logger.info(
            "Processed %s: %d/%d files stored",
            folder_name,
            persisted,
            len(files),
        )
        return ReconciliationResult(
            session_id=session_id,
            folder_name=folder_name,
            outcome=ReconcileOutcome.RECONCILED,
            files_found=len(files),
            photos_persisted=persisted,
            dropped_files=dropped,
            created=created,
            resurrected=resurrected,
        )

    def _create_session(
        self, session_id: str, folder_name: str, folder_path: Path
    ) -> SessionRecord:
        access_token = secrets.token_hex(16)
        session = self.session_repository.create_session(
            session_id=session_id,
            folder_name=folder_name,
            access_token=access_token,
            created_at=datetime.now(tz=UTC),
        )
        url = self.gallery_url(session)
        try:
            (folder_path / QR_FILENAME).write_bytes(self.qr_encoder.encode(url))
        except Exception:
            logger.exception("QR generation failed for session %s", session_id)
        logger.info("Session created: %s", session_id)
        return session

    def gallery_url(self, session: SessionRecord) -> str:
        """Return the public gallery URL for a session, token included."""
        base = self.public_base_url.rstrip("/")
        return (
            f"{base}/gallery/{quote(session.session_id, safe='')}"
            f"?token={session.access_token}"
        )

    def _write_gallery(
        self, session: SessionRecord, photos: Sequence[PhotoRecord]
    ) -> Path:
        gallery_dir = self.gallery_root / session.session_id
        gallery_dir.mkdir(parents=True, exist_ok=True)
        page = gallery_dir / GALLERY_PAGE
        temp = page.with_name(f".{GALLERY_PAGE}.tmp")
        temp.write_text(
            self.gallery_renderer.render(session, photos), encoding="utf-8"
        )
        os.replace(temp, page)
        return page


def _number_photos(
    folder_path: Path, gallery_dir: Path, transformed: list[TransformedMedia]
) -> tuple[list[PhotoDraft], list[tuple[Path, Path]]]:
    """Assign dense photo numbers and final gallery names."""
    drafts: list[PhotoDraft] = []
    moves: list[tuple[Path, Path]] = []
    processed_at = datetime.now(tz=UTC)
    for index, item in enumerate(transformed):
        number = index + 1
        poster = gallery_dir / f"photo_{number}.jpg"
        moves.append((item.poster_path, poster))
        media_path: Path | None = None
        if item.copy_path is not None:
            media_path = gallery_dir / f"photo_{number}{item.copy_path.suffix}"
            moves.append((item.copy_path, media_path))
        drafts.append(
            PhotoDraft(
                photo_number=number,
                original_path=str(folder_path / item.source_name),
                processed_path=str(poster),
                media_kind=item.media_kind,
                processed_at=processed_at,
                media_path=str(media_path) if media_path else None,
            )
        )
    return drafts, moves


def _changed_since(folder_path: Path, files: list[str], since: datetime) -> bool:
    """Return True if any of the files was written or replaced after ``since``."""
    threshold = since.timestamp()
    for name in files:
        try:
            stat = (folder_path / name).stat()
        except OSError:
            continue
        if max(stat.st_mtime, stat.st_ctime) > threshold:
            return True
    return False


def _prune_stale_files(gallery_dir: Path, keep: set[Path]) -> None:
    """Remove photo files left over from an earlier, different photo set."""
    for path in gallery_dir.glob("photo_*"):
        if _PHOTO_FILE_RE.match(path.stem) and path not in keep:
            path.unlink(missing_ok=True)

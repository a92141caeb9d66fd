"""Retention sweeps for aged, orphaned and undersized sessions."""

import asyncio
import logging
import shutil
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from pathlib import Path

from photobooth_gallery.domain.sessions import SessionStatus
from photobooth_gallery.services.reconciler import PhotoRepository, SessionRepository

logger = logging.getLogger(__name__)

_LIVE_STATUSES = [SessionStatus.ACTIVE, SessionStatus.COMPLETED]


@dataclass
class RetentionReport:
    """Session ids soft-deleted by one cleanup run, by reason."""

    orphaned: list[str] = field(default_factory=list)
    undersized: list[str] = field(default_factory=list)
    expired: list[str] = field(default_factory=list)
    kept: int = 0

    def to_dict(self) -> dict[str, object]:
        """Serialize the report for API responses."""
        return {
            "orphaned": list(self.orphaned),
            "undersized": list(self.undersized),
            "expired": list(self.expired),
            "kept": self.kept,
        }


@dataclass
class RetentionService:
    """Soft-deletes sessions that are empty, undersized or past retention."""

    session_repository: SessionRepository
    photo_repository: PhotoRepository
    gallery_root: Path
    watch_root: Callable[[], Path | None]
    retention_days: int = 7
    min_photos: int = 2
    delete_originals: bool = True

    def run_cleanup(self, now: datetime | None = None) -> RetentionReport:
        """Run one cleanup pass."""
        current = now or datetime.now(tz=UTC)
        cutoff = current - timedelta(days=self.retention_days)
        sessions = self.session_repository.list_sessions(_LIVE_STATUSES)
        counts = self.photo_repository.count_photos_by_session(
            [session.session_id for session in sessions]
        )
        report = RetentionReport()
        for session in sessions:
            photo_count = counts.get(session.session_id, 0)
            if photo_count == 0:
                self.session_repository.mark_deleted(session.session_id, current)
                report.orphaned.append(session.session_id)
                logger.info("Deleted orphan session %s", session.folder_name)
            elif photo_count < self.min_photos:
                self.session_repository.mark_deleted(session.session_id, current)
                report.undersized.append(session.session_id)
                logger.info(
                    "Deleted single-file session %s (%d photo)",
                    session.folder_name,
                    photo_count,
                )
            elif session.created_at < cutoff:
                self._remove_files(session.session_id, session.folder_name)
                self.session_repository.mark_deleted(session.session_id, current)
                report.expired.append(session.session_id)
            else:
                report.kept += 1
        logger.info(
            "Cleanup: deleted %d, kept %d",
            len(report.orphaned) + len(report.undersized) + len(report.expired),
            report.kept,
        )
        return report

    async def run_periodically(self, initial_delay: float, interval: float) -> None:
        """Run cleanup off the event loop after a delay, then on an interval."""
        await asyncio.sleep(initial_delay)
        while True:
            try:
                await asyncio.to_thread(self.run_cleanup)
            except Exception:
                logger.exception("Cleanup run failed")
            await asyncio.sleep(interval)

    def _remove_files(self, session_id: str, folder_name: str) -> None:
        gallery_path = self.gallery_root / session_id
        if gallery_path.exists():
            shutil.rmtree(gallery_path, ignore_errors=True)
            logger.info("Gallery deleted: %s", folder_name)
        root = self.watch_root()
        if not self.delete_originals or root is None:
            return
        original_path = root / folder_name
        if original_path.is_dir():
            shutil.rmtree(original_path, ignore_errors=True)
            logger.info("Original photos deleted: %s", folder_name)

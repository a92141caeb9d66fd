"""Folder scanning and settle-time consistency checks."""

import asyncio
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from photobooth_gallery.domain.media import is_media

logger = logging.getLogger(__name__)

SYSTEM_ENTRIES = frozenset(
    {
        ".DS_Store",
        ".Spotlight-V100",
        ".Trashes",
        ".TemporaryItems",
        "Thumbs.db",
        "desktop.ini",
    }
)


def is_hidden_entry(name: str) -> bool:
    """Return True for dotfiles, underscore markers and OS artifacts."""
    return name.startswith((".", "_")) or name in SYSTEM_ENTRIES


@dataclass(frozen=True)
class ScanResult:
    """Media files found directly inside a folder."""

    path: Path
    files: list[str] = field(default_factory=list)
    is_valid: bool = False

    @property
    def total_files(self) -> int:
        """Return the number of media files found."""
        return len(self.files)


@dataclass
class TreeScanner:
    """Scans session folders for media files."""

    min_files: int = 2

    def scan(self, folder_path: Path) -> ScanResult:
        """Return sorted media file names directly inside a folder.

        Unreadable or missing folders yield an empty, invalid result so a
        single bad folder never aborts a sweep.
        """
        folder = Path(folder_path)
        try:
            if not folder.is_dir():
                return ScanResult(path=folder)
            files = []
            with os.scandir(folder) as entries:
                for entry in entries:
                    if is_hidden_entry(entry.name):
                        continue
                    if entry.is_file() and is_media(entry.name):
                        files.append(entry.name)
        except OSError as exc:
            logger.warning("Failed to scan folder %s: %s", folder, exc)
            return ScanResult(path=folder)
        files.sort()
        return ScanResult(
            path=folder, files=files, is_valid=len(files) >= self.min_files
        )

    async def validate(
        self, folder_path: Path, expected_count: int, settle_delay: float
    ) -> bool:
        """Rescan after a settle delay and confirm the file count is stable.

        Capture software and sync clients write files progressively, so a
        scan taken mid-write undercounts. This is a heuristic, not a lock.
        """
        await asyncio.sleep(settle_delay)
        current = self.scan(folder_path)
        if current.total_files != expected_count:
            logger.info(
                "File count changed in %s: expected %d, found %d",
                folder_path,
                expected_count,
                current.total_files,
            )
            return False
        if current.total_files < self.min_files:
            logger.info(
                "Not enough files in %s: %d < %d",
                folder_path,
                current.total_files,
                self.min_files,
            )
            return False
        return True


def list_session_folders(root: Path) -> list[Path]:
    """Return candidate session folders under the root, newest first."""
    candidates: list[tuple[float, Path]] = []
    try:
        entries = list(os.scandir(root))
    except OSError as exc:
        logger.warning("Failed to list watch root %s: %s", root, exc)
        return []
    for entry in entries:
        if is_hidden_entry(entry.name):
            logger.debug("Skipping hidden entry %s", entry.name)
            continue
        try:
            if not entry.is_dir():
                logger.debug("Skipping non-folder %s", entry.name)
                continue
            stat = entry.stat()
        except OSError as exc:
            logger.warning("Failed to inspect %s: %s", entry.path, exc)
            continue
        created = getattr(stat, "st_birthtime", stat.st_ctime)
        candidates.append((created, Path(entry.path)))
    candidates.sort(key=lambda item: (item[0], item[1].name), reverse=True)
    return [path for _, path in candidates]

"""Resolution of the watched photos folder."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from photobooth_gallery.config import Settings

logger = logging.getLogger(__name__)


class GlobalSettingsRepository(Protocol):
    """Persistence interface for operator-level settings."""

    def get_watch_folder(self) -> str | None:
        """Return the persisted watch folder override, if any."""

    def set_watch_folder(self, path: str) -> None:
        """Persist a new watch folder override."""


@dataclass
class WatchRootSource:
    """Resolves the watch root from stored settings or the environment."""

    repository: GlobalSettingsRepository
    settings: Settings

    def get_watch_root(self) -> Path:
        """Return the persisted override, falling back to configuration."""
        try:
            stored = self.repository.get_watch_folder()
        except Exception:
            logger.exception("Failed to read watch folder from settings")
            stored = None
        if stored:
            logger.info("Using watch folder from settings: %s", stored)
            return Path(stored)
        logger.info("Using default watch folder: %s", self.settings.photos_folder)
        return Path(self.settings.photos_folder)

    def set_watch_root(self, path: Path) -> None:
        """Persist a new watch root override."""
        self.repository.set_watch_folder(str(path))

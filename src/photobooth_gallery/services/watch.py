"""Lifecycle of the watched photos folder."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from photobooth_gallery.domain.media import is_media
from photobooth_gallery.domain.sessions import ReconcileOutcome
from photobooth_gallery.services.debounce import DebounceCoordinator
from photobooth_gallery.services.scanner import is_hidden_entry, list_session_folders
from photobooth_gallery.services.watch_root import WatchRootSource

logger = logging.getLogger(__name__)

EventCallback = Callable[[str, str], None]


class WatchSubscription(Protocol):
    """Interface for recursive filesystem change notifications."""

    def start(self, root: Path, on_event: EventCallback) -> None:
        """Subscribe to changes under root, delivering (kind, path) on the loop."""

    def stop(self) -> None:
        """Cancel the subscription."""


@dataclass(frozen=True)
class SweepSummary:
    """Counts from a full sweep of the watch root."""

    processed: int = 0
    skipped: int = 0
    failed: int = 0

    def to_dict(self) -> dict[str, int]:
        """Serialize the summary for API responses."""
        return {
            "processed": self.processed,
            "skipped": self.skipped,
            "failed": self.failed,
        }


@dataclass
class SupervisorState:
    """Mutable watcher state owned by a single supervisor."""

    coordinator: DebounceCoordinator
    watch_root: Path | None = None
    subscription: WatchSubscription | None = None
    sweep_summary: SweepSummary | None = None
    lifecycle_lock: asyncio.Lock = field(default_factory=asyncio.Lock)


@dataclass
class WatchSupervisor:
    """Sweeps the watch root on start and then follows live changes."""

    state: SupervisorState
    watch_root_source: WatchRootSource
    subscription_factory: Callable[[], WatchSubscription]
    fallback_root: Path
    sweep_settle_delay: float = 0.1

    async def start(self, root: Path | None = None) -> Path:
        """Resolve the root, subscribe to changes and sweep existing folders.

        The subscription is live before the sweep lists folders, so folders
        created mid-sweep arrive as events and go through the debouncer.
        """
        async with self.state.lifecycle_lock:
            self._stop()
            requested = root or self.watch_root_source.get_watch_root()
            resolved = self._prepare_root(Path(requested)).absolute()
            self.state.watch_root = resolved
            self.state.sweep_summary = None
            subscription = self.subscription_factory()
            subscription.start(resolved, self.handle_event)
            self.state.subscription = subscription
            logger.info("File watcher monitoring %s", resolved)
            self.state.sweep_summary = await self.sweep(resolved)
            return resolved

    async def reload(self, new_root: Path) -> Path:
        """Restart against a new root; in-flight runs are not cancelled."""
        logger.info("Reloading watcher with new path %s", new_root)
        return await self.start(Path(new_root))

    async def stop(self) -> None:
        """Unsubscribe and cancel pending debounce timers."""
        async with self.state.lifecycle_lock:
            self._stop()

    async def sweep(self, root: Path) -> SweepSummary:
        """Process every session folder sequentially, newest first."""
        processed = skipped = failed = 0
        for folder in list_session_folders(root):
            try:
                result = await self.state.coordinator.process_now(
                    folder.name, folder, settle_delay=self.sweep_settle_delay
                )
            except Exception:
                logger.exception("Failed to process session %s", folder.name)
                failed += 1
                continue
            if result is not None and result.outcome is ReconcileOutcome.RECONCILED:
                processed += 1
            else:
                skipped += 1
        logger.info(
            "Scan completed: %d processed, %d skipped, %d failed",
            processed,
            skipped,
            failed,
        )
        return SweepSummary(processed=processed, skipped=skipped, failed=failed)

    def handle_event(self, kind: str, path: str) -> None:
        """Forward a change inside a session folder to the debouncer.

        Files directly in the root never become sessions.
        """
        root = self.state.watch_root
        if root is None:
            return
        try:
            relative = Path(path).absolute().relative_to(root)
        except ValueError:
            return
        parts = relative.parts
        if len(parts) != 2:
            return
        folder_name, filename = parts
        if is_hidden_entry(folder_name) or not is_media(filename):
            return
        logger.debug("File %s (%s) in %s", filename, kind, folder_name)
        self.state.coordinator.on_file_event(folder_name, root / folder_name)

    def status(self) -> dict[str, object]:
        """Return a snapshot of the watcher for operators."""
        summary = self.state.sweep_summary
        return {
            "watch_root": str(self.state.watch_root) if self.state.watch_root else None,
            "watching": self.state.subscription is not None,
            "pending_folders": self.state.coordinator.pending_folders(),
            "last_sweep": summary.to_dict() if summary else None,
        }

    def _prepare_root(self, root: Path) -> Path:
        try:
            root.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            logger.error("Failed to create watch folder %s: %s", root, exc)
            logger.warning("Using fallback watch folder %s", self.fallback_root)
            self.fallback_root.mkdir(parents=True, exist_ok=True)
            return self.fallback_root
        return root

    def _stop(self) -> None:
        subscription = self.state.subscription
        if subscription is not None:
            logger.info("Stopping existing watcher")
            try:
                subscription.stop()
            except Exception:
                logger.exception("Error closing watcher")
            self.state.subscription = None
        self.state.coordinator.clear()

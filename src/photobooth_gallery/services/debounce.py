"""Per-folder debouncing of filesystem events."""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Protocol

from photobooth_gallery.domain.sessions import (
    ReconcileOutcome,
    ReconciliationResult,
    derive_session_id,
)
from photobooth_gallery.services.scanner import TreeScanner

logger = logging.getLogger(__name__)


class FolderState(Enum):
    """Processing state of a watched folder."""

    IDLE = "idle"
    PENDING = "pending"
    SCANNING = "scanning"
    VALIDATING = "validating"
    RECONCILING = "reconciling"


class FolderReconciler(Protocol):
    """Interface for the step that persists a validated folder."""

    async def reconcile(
        self, folder_name: str, folder_path: Path, candidate_files: list[str]
    ) -> ReconciliationResult:
        """Reconcile a folder into its session."""


@dataclass
class _FolderSlot:
    folder_path: Path
    state: FolderState = FolderState.IDLE
    timer: asyncio.TimerHandle | None = None
    task: asyncio.Task | None = None
    dirty: bool = False

    @property
    def busy(self) -> bool:
        return self.task is not None and not self.task.done()


@dataclass
class DebounceCoordinator:
    """Collapses bursts of events into one processing run per folder.

    Each folder moves through ``IDLE -> PENDING -> SCANNING -> VALIDATING ->
    RECONCILING -> IDLE`` and drops back to ``IDLE`` at any failed gate. At
    most one run per folder is in flight; a timer that fires during a run
    schedules one follow-up run after it.
    """

    scanner: TreeScanner
    reconciler: FolderReconciler
    delay: float = 5.0
    settle_delay: float = 0.5
    _slots: dict[str, _FolderSlot] = field(default_factory=dict, init=False)

    def on_file_event(self, folder_name: str, folder_path: Path) -> None:
        """Restart the debounce timer for a folder."""
        slot = self._slot(folder_name, folder_path)
        if slot.timer is not None:
            slot.timer.cancel()
            logger.debug("Debounce timer reset for %s", folder_name)
        self._schedule(folder_name, slot)

    async def process_now(
        self,
        folder_name: str,
        folder_path: Path,
        settle_delay: float | None = None,
    ) -> ReconciliationResult | None:
        """Run the folder pipeline immediately, bypassing the timer.

        Returns None when the folder is busy; a failed gate yields a result
        with outcome ``BELOW_THRESHOLD`` or ``UNSTABLE``.
        Reconciler errors propagate to the caller.
        """
        slot = self._slot(folder_name, folder_path)
        if slot.busy:
            logger.info("Folder %s is already processing, skipping", folder_name)
            return None
        if slot.timer is not None:
            slot.timer.cancel()
            slot.timer = None
        slot.task = asyncio.current_task()
        try:
            return await self._pipeline(
                folder_name,
                slot,
                self.settle_delay if settle_delay is None else settle_delay,
            )
        finally:
            self._finish(folder_name, slot)

    def state_of(self, folder_name: str) -> FolderState:
        """Return the current state of a folder."""
        slot = self._slots.get(folder_name)
        return slot.state if slot else FolderState.IDLE

    def pending_folders(self) -> list[str]:
        """Return folders waiting for their debounce timer."""
        return sorted(
            name for name, slot in self._slots.items() if slot.timer is not None
        )

    def clear(self) -> None:
        """Cancel pending timers; in-flight runs finish on their own."""
        for name, slot in list(self._slots.items()):
            if slot.timer is not None:
                slot.timer.cancel()
                slot.timer = None
            slot.dirty = False
            if not slot.busy:
                del self._slots[name]

    def _slot(self, folder_name: str, folder_path: Path) -> _FolderSlot:
        slot = self._slots.get(folder_name)
        if slot is None:
            slot = _FolderSlot(folder_path=Path(folder_path))
            self._slots[folder_name] = slot
        else:
            slot.folder_path = Path(folder_path)
        return slot

    def _schedule(self, folder_name: str, slot: _FolderSlot) -> None:
        loop = asyncio.get_running_loop()
        slot.timer = loop.call_later(self.delay, self._fire, folder_name)
        if not slot.busy:
            slot.state = FolderState.PENDING

    def _fire(self, folder_name: str) -> None:
        slot = self._slots.get(folder_name)
        if slot is None:
            return
        slot.timer = None
        if slot.busy:
            slot.dirty = True
            logger.info("Folder %s still processing, queued a rerun", folder_name)
            return
        slot.task = asyncio.get_running_loop().create_task(
            self._run_from_timer(folder_name, slot)
        )

    async def _run_from_timer(self, folder_name: str, slot: _FolderSlot) -> None:
        logger.info("Debounce complete, processing folder %s", folder_name)
        try:
            await self._pipeline(folder_name, slot, self.settle_delay)
        except Exception:
            logger.exception("Error processing folder %s", folder_name)
        finally:
            self._finish(folder_name, slot)

    async def _pipeline(
        self, folder_name: str, slot: _FolderSlot, settle_delay: float
    ) -> ReconciliationResult:
        folder_path = slot.folder_path
        slot.state = FolderState.SCANNING
        scan = self.scanner.scan(folder_path)
        if not scan.is_valid:
            logger.info(
                "Skipping %s: %d files < %d minimum",
                folder_name,
                scan.total_files,
                self.scanner.min_files,
            )
            return _skipped(
                folder_name, ReconcileOutcome.BELOW_THRESHOLD, scan.total_files
            )

        slot.state = FolderState.VALIDATING
        stable = await self.scanner.validate(
            folder_path, scan.total_files, settle_delay
        )
        if not stable:
            logger.info("Consistency check failed for %s, skipping", folder_name)
            return _skipped(folder_name, ReconcileOutcome.UNSTABLE, scan.total_files)

        slot.state = FolderState.RECONCILING
        return await self.reconciler.reconcile(folder_name, folder_path, scan.files)

    def _finish(self, folder_name: str, slot: _FolderSlot) -> None:
        slot.task = None
        if slot.dirty:
            slot.dirty = False
            self._schedule(folder_name, slot)
        elif slot.timer is not None:
            slot.state = FolderState.PENDING
        else:
            slot.state = FolderState.IDLE
            if self._slots.get(folder_name) is slot:
                del self._slots[folder_name]


def _skipped(
    folder_name: str, outcome: ReconcileOutcome, files_found: int
) -> ReconciliationResult:
    return ReconciliationResult(
        session_id=derive_session_id(folder_name),
        folder_name=folder_name,
        outcome=outcome,
        files_found=files_found,
    )

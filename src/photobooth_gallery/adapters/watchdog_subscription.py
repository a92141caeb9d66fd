"""Recursive folder watching with watchdog."""

import asyncio
import logging
import os
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver

from photobooth_gallery.services.watch import EventCallback, WatchSubscription

logger = logging.getLogger(__name__)

_IGNORED_EVENT_TYPES = frozenset({"opened", "closed_no_write"})


class _LoopForwardingHandler(FileSystemEventHandler):
    """Hands file events from the observer thread to the asyncio loop."""

    def __init__(
        self, loop: asyncio.AbstractEventLoop, on_event: EventCallback
    ) -> None:
        super().__init__()
        self._loop = loop
        self._on_event = on_event

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory or event.event_type in _IGNORED_EVENT_TYPES:
            return
        paths = [event.src_path]
        dest_path = getattr(event, "dest_path", "")
        if dest_path:
            paths.append(dest_path)
        for path in paths:
            try:
                self._loop.call_soon_threadsafe(
                    self._on_event, event.event_type, os.fsdecode(path)
                )
            except RuntimeError:
                logger.debug("Event loop closed, dropping event for %s", path)


@dataclass
class WatchdogSubscription(WatchSubscription):
    """Watchdog observer scoped to one watch root."""

    observer_factory: Callable[[], BaseObserver] = Observer
    join_timeout: float = 5.0
    _observer: BaseObserver | None = field(default=None, init=False)

    def start(self, root: Path, on_event: EventCallback) -> None:
        """Start a recursive observer delivering events on the running loop."""
        handler = _LoopForwardingHandler(asyncio.get_running_loop(), on_event)
        observer = self.observer_factory()
        observer.schedule(handler, str(root), recursive=True)
        observer.start()
        self._observer = observer
        logger.info("Watching %s for changes", root)

    def stop(self) -> None:
        """Stop the observer thread."""
        observer = self._observer
        if observer is None:
            return
        observer.stop()
        observer.join(timeout=self.join_timeout)
        self._observer = None

"""FastAPI application factory."""

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from photobooth_gallery.api.admin import router as admin_router
from photobooth_gallery.app_logging import configure_logging
from photobooth_gallery.containers import AppContainer

_SECONDS_PER_HOUR = 3600


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        state_container: AppContainer = app.state.container
        settings = state_container.settings
        tasks: list[asyncio.Task] = []
        if settings.watcher_enabled:
            tasks.append(asyncio.create_task(_start_watcher(state_container)))
        else:
            logger.info("File watcher disabled")
        tasks.append(
            asyncio.create_task(
                state_container.retention_service.run_periodically(
                    initial_delay=settings.cleanup_initial_delay_seconds,
                    interval=settings.cleanup_interval_hours * _SECONDS_PER_HOUR,
                )
            )
        )
        yield
        for task in tasks:
            task.cancel()
        for task in tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        await state_container.close_resources()

    async def _start_watcher(state_container: AppContainer) -> None:
        try:
            await state_container.supervisor.start()
        except Exception:
            logger.exception("Failed to start file watcher")

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(admin_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    return app

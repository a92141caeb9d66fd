"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path

from supabase import create_client

from photobooth_gallery.adapters.jinja_gallery_renderer import JinjaGalleryRenderer
from photobooth_gallery.adapters.pillow_media_transformer import PillowMediaTransformer
from photobooth_gallery.adapters.qrcode_encoder import QrcodeEncoder
from photobooth_gallery.adapters.supabase_global_settings_repository import (
    SupabaseGlobalSettingsRepository,
)
from photobooth_gallery.adapters.supabase_photo_repository import (
    SupabasePhotoRepository,
)
from photobooth_gallery.adapters.supabase_session_repository import (
    SupabaseSessionRepository,
)
from photobooth_gallery.adapters.watchdog_subscription import WatchdogSubscription
from photobooth_gallery.config import Settings
from photobooth_gallery.services.debounce import DebounceCoordinator
from photobooth_gallery.services.media import MediaProcessor
from photobooth_gallery.services.reconciler import SessionReconciler
from photobooth_gallery.services.retention import RetentionService
from photobooth_gallery.services.scanner import TreeScanner
from photobooth_gallery.services.watch import SupervisorState, WatchSupervisor
from photobooth_gallery.services.watch_root import WatchRootSource


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    watch_root_source: WatchRootSource
    reconciler: SessionReconciler
    supervisor: WatchSupervisor
    retention_service: RetentionService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    session_repository = SupabaseSessionRepository(supabase_client)
    photo_repository = SupabasePhotoRepository(supabase_client)
    watch_root_source = WatchRootSource(
        repository=SupabaseGlobalSettingsRepository(supabase_client),
        settings=resolved_settings,
    )
    scanner = TreeScanner(min_files=resolved_settings.min_files_per_session)
    gallery_root = Path(resolved_settings.gallery_folder)
    reconciler = SessionReconciler(
        session_repository=session_repository,
        photo_repository=photo_repository,
        media_processor=MediaProcessor(
            transformer=PillowMediaTransformer(
                min_dimension=resolved_settings.min_image_dimension
            ),
            max_width=resolved_settings.thumbnail_width,
            max_height=resolved_settings.thumbnail_height,
            timeout_seconds=resolved_settings.transform_timeout_seconds,
            concurrency=resolved_settings.transform_concurrency,
        ),
        qr_encoder=QrcodeEncoder(),
        gallery_renderer=JinjaGalleryRenderer(),
        scanner=scanner,
        gallery_root=gallery_root,
        public_base_url=resolved_settings.public_base_url,
    )
    coordinator = DebounceCoordinator(
        scanner=scanner,
        reconciler=reconciler,
        delay=resolved_settings.debounce_seconds,
        settle_delay=resolved_settings.settle_delay_seconds,
    )
    state = SupervisorState(coordinator=coordinator)
    supervisor = WatchSupervisor(
        state=state,
        watch_root_source=watch_root_source,
        subscription_factory=WatchdogSubscription,
        fallback_root=Path(resolved_settings.fallback_watch_folder),
        sweep_settle_delay=resolved_settings.sweep_settle_delay_seconds,
    )
    retention_service = RetentionService(
        session_repository=session_repository,
        photo_repository=photo_repository,
        gallery_root=gallery_root,
        watch_root=lambda: state.watch_root,
        retention_days=resolved_settings.retention_days,
        min_photos=resolved_settings.min_files_per_session,
        delete_originals=resolved_settings.retention_delete_originals,
    )

    async def close_resources() -> None:
        await supervisor.stop()

    return AppContainer(
        settings=resolved_settings,
        watch_root_source=watch_root_source,
        reconciler=reconciler,
        supervisor=supervisor,
        retention_service=retention_service,
        close_resources=close_resources,
    )

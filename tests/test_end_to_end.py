"""End-to-end ingestion with the real media, QR and page adapters."""

import asyncio
from pathlib import Path

from PIL import Image

from photobooth_gallery.adapters.jinja_gallery_renderer import JinjaGalleryRenderer
from photobooth_gallery.adapters.pillow_media_transformer import PillowMediaTransformer
from photobooth_gallery.adapters.qrcode_encoder import QrcodeEncoder
from photobooth_gallery.config import Settings
from photobooth_gallery.services.debounce import DebounceCoordinator
from photobooth_gallery.services.media import MediaProcessor
from photobooth_gallery.services.reconciler import QR_FILENAME, SessionReconciler
from photobooth_gallery.services.scanner import TreeScanner
from photobooth_gallery.services.watch import SupervisorState, WatchSupervisor
from photobooth_gallery.services.watch_root import WatchRootSource
from tests.conftest import (
    FakeSubscription,
    InMemoryGlobalSettingsRepository,
    InMemoryPhotoRepository,
    InMemorySessionRepository,
)


def test_folder_of_photos_becomes_gallery(settings: Settings, photos_root: Path) -> None:
    session_repository = InMemorySessionRepository()
    photo_repository = InMemoryPhotoRepository(session_repository)
    gallery_root = Path(settings.gallery_folder)
    scanner = TreeScanner(min_files=2)
    reconciler = SessionReconciler(
        session_repository=session_repository,
        photo_repository=photo_repository,
        media_processor=MediaProcessor(
            transformer=PillowMediaTransformer(),
            max_width=320,
            max_height=180,
        ),
        qr_encoder=QrcodeEncoder(),
        gallery_renderer=JinjaGalleryRenderer(),
        scanner=scanner,
        gallery_root=gallery_root,
        public_base_url="http://192.168.1.20:3000",
    )
    supervisor = WatchSupervisor(
        state=SupervisorState(
            coordinator=DebounceCoordinator(scanner, reconciler, settle_delay=0.0)
        ),
        watch_root_source=WatchRootSource(
            repository=InMemoryGlobalSettingsRepository(), settings=settings
        ),
        subscription_factory=FakeSubscription,
        fallback_root=Path(settings.fallback_watch_folder),
        sweep_settle_delay=0.0,
    )
    folder = photos_root / "Event1"
    folder.mkdir()
    Image.new("RGB", (640, 480), (200, 30, 30)).save(folder / "a.jpg")
    Image.new("RGB", (480, 640), (30, 200, 30)).save(folder / "b.jpg")

    async def run() -> None:
        await supervisor.start()
        await supervisor.stop()

    asyncio.run(run())

    session = session_repository.get_session("Event1")
    assert session is not None
    assert len(photo_repository.list_photos("Event1")) == 2
    with Image.open(gallery_root / "Event1" / "photo_1.jpg") as poster:
        assert poster.size == (320, 180)
    with Image.open(folder / QR_FILENAME) as qr_code:
        assert qr_code.format == "PNG"
    page = (gallery_root / "Event1" / "index.html").read_text(encoding="utf-8")
    assert "Event1" in page
    assert 'src="photo_2.jpg"' in page
    assert "2 photos" in page

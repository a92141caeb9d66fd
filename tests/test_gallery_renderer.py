"""Tests for the static gallery page renderer."""

from datetime import UTC, datetime

from photobooth_gallery.adapters.jinja_gallery_renderer import JinjaGalleryRenderer
from photobooth_gallery.domain.media import MediaKind
from photobooth_gallery.domain.sessions import (
    PhotoRecord,
    SessionRecord,
    SessionStatus,
)

NOW = datetime(2026, 5, 20, 12, 0, tzinfo=UTC)


def _session(folder_name: str) -> SessionRecord:
    return SessionRecord(
        session_id=folder_name,
        folder_name=folder_name,
        status=SessionStatus.ACTIVE,
        access_token="a" * 32,
        created_at=NOW,
    )


def _photo(
    number: int, kind: MediaKind, media_path: str | None = None
) -> PhotoRecord:
    return PhotoRecord(
        session_id="Event1",
        photo_number=number,
        original_path=f"/photos/Event1/{number}",
        processed_path=f"/gallery/Event1/photo_{number}.jpg",
        media_kind=kind,
        processed_at=NOW,
        media_path=media_path,
    )


def test_render_lists_photos_in_order() -> None:
    html = JinjaGalleryRenderer().render(
        _session("Event1"),
        [_photo(2, MediaKind.IMAGE), _photo(1, MediaKind.IMAGE)],
    )

    assert "2 photos" in html
    assert html.index('src="photo_1.jpg"') < html.index('src="photo_2.jpg"')
    assert "/gallery/Event1" not in html


def test_render_mixed_media() -> None:
    html = JinjaGalleryRenderer().render(
        _session("Event1"),
        [
            _photo(1, MediaKind.IMAGE),
            _photo(2, MediaKind.ANIMATED, "/gallery/Event1/photo_2.gif"),
            _photo(3, MediaKind.VIDEO, "/gallery/Event1/photo_3.mov"),
        ],
    )

    assert "3 media (1 photos, 1 GIF, 1 video)" in html
    assert '<a href="photo_2.gif" download>' in html
    assert 'poster="photo_3.jpg"' in html
    assert '<source src="photo_3.mov" type="video/quicktime">' in html


def test_render_escapes_folder_name() -> None:
    html = JinjaGalleryRenderer().render(_session("<b>Party</b>"), [])

    assert "&lt;b&gt;Party&lt;/b&gt;" in html
    assert "<b>Party</b>" not in html
    assert "No photos yet." in html

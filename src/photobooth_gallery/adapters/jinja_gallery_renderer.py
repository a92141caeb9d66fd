"""Static gallery page rendering with Jinja2."""

from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from jinja2 import Environment

from photobooth_gallery.domain.media import MediaKind
from photobooth_gallery.domain.sessions import PhotoRecord, SessionRecord
from photobooth_gallery.services.reconciler import GalleryRenderer

_jinja_env = Environment(autoescape=True)

_VIDEO_TYPES = {
    ".mp4": "video/mp4",
    ".mov": "video/quicktime",
    ".avi": "video/x-msvideo",
    ".webm": "video/webm",
}

GALLERY_TEMPLATE = _jinja_env.from_string("""\
<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>{{ title }} &middot; Photo Gallery</title>
<link rel="icon" href="/favicon.png">
<style>
* { margin: 0; padding: 0; box-sizing: border-box; }
body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', sans-serif;
       background: #f0f0f0; padding: 20px; }
.container { max-width: 1000px; margin: 0 auto; background: #fff;
             border-radius: 20px; padding: 30px; }
.header { text-align: center; margin-bottom: 30px; }
.header h1 { font-size: 2em; margin-bottom: 10px; color: #1a1a1a; }
.header p { color: #666; }
.thumbnails { display: grid; gap: 15px;
              grid-template-columns: repeat(auto-fit, minmax(150px, 1fr)); }
.thumbnail { border-radius: 10px; overflow: hidden; text-align: center; }
.thumbnail img, .thumbnail video { width: 100%; height: auto; display: block; }
.thumbnail p { margin-top: 8px; font-size: 0.85em; color: #666; }
.empty { text-align: center; color: #999; padding: 60px 20px; }
</style>
</head>
<body>
<div class="container">
<div class="header">
<h1 class="gallery-title">Photo Gallery</h1>
<p id="sessionName">{{ title }}</p>
<p id="photoCount">{{ count_text }}</p>
</div>
{% if photos %}
<div class="thumbnails" id="thumbnails">
{% for photo in photos %}
<div class="thumbnail" data-photo-number="{{ photo.number }}" data-media-type="{{ photo.kind }}">
{% if photo.kind == "video" %}<video controls preload="none" poster="{{ photo.poster }}"><source src="{{ photo.media }}" type="{{ photo.mime }}"></video>
{% else %}<a href="{{ photo.media }}" download><img src="{{ photo.poster }}" alt="Media {{ photo.number }}" loading="lazy"></a>
{% endif %}<p>#{{ photo.number }}</p>
</div>
{% endfor %}
</div>
{% else %}
<div class="empty">No photos yet.</div>
{% endif %}
</div>
<script src="/src/branding-loader.js"></script>
</body>
</html>
""")


@dataclass
class JinjaGalleryRenderer(GalleryRenderer):
    """Renders a session's photos as a self-contained static page."""

    def render(self, session: SessionRecord, photos: Sequence[PhotoRecord]) -> str:
        """Return the gallery page HTML."""
        ordered = sorted(photos, key=lambda photo: photo.photo_number)
        return GALLERY_TEMPLATE.render(
            title=session.folder_name or "Photobooth Session",
            count_text=_count_text(ordered),
            photos=[_photo_context(photo) for photo in ordered],
        )


def _photo_context(photo: PhotoRecord) -> dict[str, object]:
    poster = Path(photo.processed_path).name
    media = Path(photo.media_path).name if photo.media_path else poster
    return {
        "number": photo.photo_number,
        "kind": photo.media_kind.value,
        "poster": poster,
        "media": media,
        "mime": _VIDEO_TYPES.get(Path(media).suffix.lower(), "video/mp4"),
    }


def _count_text(photos: Sequence[PhotoRecord]) -> str:
    videos = sum(1 for photo in photos if photo.media_kind is MediaKind.VIDEO)
    animated = sum(1 for photo in photos if photo.media_kind is MediaKind.ANIMATED)
    if not videos and not animated:
        return f"{len(photos)} photos"
    parts = [f"{len(photos) - videos - animated} photos"]
    if animated:
        parts.append(f"{animated} GIF")
    if videos:
        parts.append(f"{videos} video")
    return f"{len(photos)} media ({', '.join(parts)})"

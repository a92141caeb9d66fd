"""Media classification by file extension."""

from enum import Enum
from pathlib import PurePath


class MediaKind(Enum):
    """Kind of media a session file holds."""

    IMAGE = "image"
    ANIMATED = "animated"
    VIDEO = "video"
    UNSUPPORTED = "unsupported"


IMAGE_EXTENSIONS = frozenset({".jpg", ".jpeg", ".png", ".webp"})
ANIMATED_EXTENSIONS = frozenset({".gif"})
VIDEO_EXTENSIONS = frozenset({".mp4", ".mov", ".avi", ".webm"})

# Marker prefix for files written by the gallery itself, e.g. _qrcode.png.
MARKER_PREFIX = "_"


def classify(filename: str) -> MediaKind:
    """Return the media kind for a file name."""
    name = PurePath(filename).name
    if not name or name.startswith((".", MARKER_PREFIX)):
        return MediaKind.UNSUPPORTED
    extension = PurePath(name).suffix.lower()
    if extension in IMAGE_EXTENSIONS:
        return MediaKind.IMAGE
    if extension in ANIMATED_EXTENSIONS:
        return MediaKind.ANIMATED
    if extension in VIDEO_EXTENSIONS:
        return MediaKind.VIDEO
    return MediaKind.UNSUPPORTED


def is_media(filename: str) -> bool:
    """Return True when the file name classifies as a supported media kind."""
    return classify(filename) is not MediaKind.UNSUPPORTED

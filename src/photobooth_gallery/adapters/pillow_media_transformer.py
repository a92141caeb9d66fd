"""Pillow-based media transforms."""

import shutil
from dataclasses import dataclass
from pathlib import Path

from PIL import Image, ImageDraw, ImageFont, ImageOps, UnidentifiedImageError

from photobooth_gallery.services.media import MediaTransformer, MediaTransformError

_LETTERBOX_COLOR = (0, 0, 0)
_PLACEHOLDER_COLOR = (45, 45, 45)
_PLACEHOLDER_TEXT_COLOR = (255, 255, 255)


@dataclass
class PillowMediaTransformer(MediaTransformer):
    """Resizes images onto a fixed canvas without cropping."""

    min_dimension: int = 100
    jpeg_quality: int = 90

    def transform_image(
        self, src: Path, dst: Path, max_width: int, max_height: int
    ) -> None:
        """Write a letterboxed JPEG of an image."""
        with self._open(src) as image:
            self._write_letterboxed(image, dst, max_width, max_height)

    def transform_animated_poster(
        self, src: Path, dst: Path, max_width: int, max_height: int
    ) -> None:
        """Write a letterboxed JPEG of the first animation frame."""
        with self._open(src) as image:
            image.seek(0)
            self._write_letterboxed(image, dst, max_width, max_height)

    def copy_verbatim(self, src: Path, dst: Path) -> None:
        """Copy a file, keeping its bytes and timestamps."""
        shutil.copy2(src, dst)

    def synthesize_placeholder(
        self, dst: Path, label: str, width: int, height: int
    ) -> None:
        """Write a flat poster with a centered text label."""
        canvas = Image.new("RGB", (width, height), _PLACEHOLDER_COLOR)
        draw = ImageDraw.Draw(canvas)
        font = ImageFont.load_default(size=max(12, height // 9))
        left, top, right, bottom = draw.textbbox((0, 0), label, font=font)
        position = (
            (width - (right - left)) / 2 - left,
            (height - (bottom - top)) / 2 - top,
        )
        draw.text(position, label, fill=_PLACEHOLDER_TEXT_COLOR, font=font)
        canvas.save(dst, "JPEG", quality=80)

    def _open(self, src: Path) -> Image.Image:
        try:
            image = Image.open(src)
            image.load()
        except (UnidentifiedImageError, Image.DecompressionBombError) as exc:
            raise MediaTransformError(f"Cannot decode {src.name}: {exc}") from exc
        width, height = image.size
        if width < self.min_dimension or height < self.min_dimension:
            image.close()
            raise MediaTransformError(
                f"Image too small: {src.name} ({width}x{height})"
            )
        return image

    def _write_letterboxed(
        self, image: Image.Image, dst: Path, max_width: int, max_height: int
    ) -> None:
        frame = ImageOps.exif_transpose(image).convert("RGB")
        boxed = ImageOps.pad(
            frame, (max_width, max_height), color=_LETTERBOX_COLOR, centering=(0.5, 0.5)
        )
        boxed.save(dst, "JPEG", quality=self.jpeg_quality, progressive=True)

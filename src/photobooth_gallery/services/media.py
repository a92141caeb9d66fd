"""Per-file media transforms with bounded concurrency and timeouts."""

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from photobooth_gallery.domain.media import MediaKind, classify

logger = logging.getLogger(__name__)

VIDEO_PLACEHOLDER_LABEL = "VIDEO"


class MediaTransformError(RuntimeError):
    """Raised when a single media file cannot be transformed."""


class MediaTransformer(Protocol):
    """Interface for image resizing and media copies."""

    def transform_image(
        self, src: Path, dst: Path, max_width: int, max_height: int
    ) -> None:
        """Write a letterboxed JPEG of an image onto a bounded canvas."""

    def transform_animated_poster(
        self, src: Path, dst: Path, max_width: int, max_height: int
    ) -> None:
        """Write a letterboxed JPEG of the first frame of an animation."""

    def copy_verbatim(self, src: Path, dst: Path) -> None:
        """Copy a file byte for byte."""

    def synthesize_placeholder(
        self, dst: Path, label: str, width: int, height: int
    ) -> None:
        """Write a placeholder poster JPEG with a text label."""


@dataclass(frozen=True)
class TransformedMedia:
    """A source file whose poster (and optional copy) sit in staging."""

    source_name: str
    media_kind: MediaKind
    poster_path: Path
    copy_path: Path | None = None


@dataclass
class MediaProcessor:
    """Runs the transform matching each file's media kind."""

    transformer: MediaTransformer
    max_width: int = 1920
    max_height: int = 1080
    timeout_seconds: float = 30.0
    concurrency: int = 4

    async def process_all(
        self, folder: Path, files: list[str], staging: Path
    ) -> tuple[list[TransformedMedia], list[str]]:
        """Transform files into staging, returning successes and dropped names."""
        semaphore = asyncio.Semaphore(max(1, self.concurrency))

        async def run(index: int, name: str) -> TransformedMedia | None:
            async with semaphore:
                return await self._process_one(folder / name, staging, index)

        results = await asyncio.gather(
            *(run(index, name) for index, name in enumerate(files))
        )
        transformed = [item for item in results if item is not None]
        dropped = [
            name for name, item in zip(files, results, strict=True) if item is None
        ]
        transformed.sort(key=lambda item: item.source_name)
        return transformed, dropped

    async def _process_one(
        self, src: Path, staging: Path, index: int
    ) -> TransformedMedia | None:
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self.transform, src, staging, index),
                timeout=self.timeout_seconds,
            )
        except TimeoutError:
            logger.warning(
                "Timed out processing %s after %.0fs, skipping",
                src.name,
                self.timeout_seconds,
            )
        except (MediaTransformError, OSError) as exc:
            logger.warning("Failed to process %s, skipping: %s", src.name, exc)
        return None

    def transform(self, src: Path, staging: Path, index: int) -> TransformedMedia:
        """Transform one file synchronously into the staging folder."""
        kind = classify(src.name)
        poster = staging / f"{index}.jpg"
        copy: Path | None = None
        match kind:
            case MediaKind.IMAGE:
                self.transformer.transform_image(
                    src, poster, self.max_width, self.max_height
                )
            case MediaKind.ANIMATED:
                copy = staging / f"{index}{src.suffix.lower()}"
                self.transformer.copy_verbatim(src, copy)
                self.transformer.transform_animated_poster(
                    src, poster, self.max_width, self.max_height
                )
            case MediaKind.VIDEO:
                copy = staging / f"{index}{src.suffix.lower()}"
                self.transformer.copy_verbatim(src, copy)
                self.transformer.synthesize_placeholder(
                    poster, VIDEO_PLACEHOLDER_LABEL, self.max_width, self.max_height
                )
            case MediaKind.UNSUPPORTED:
                raise MediaTransformError(f"Unsupported media type: {src.name}")
        return TransformedMedia(
            source_name=src.name,
            media_kind=kind,
            poster_path=poster,
            copy_path=copy,
        )

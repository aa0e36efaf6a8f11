"""Thumbnail, dimensions and OCR for a decodable raster image."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from PIL import Image

from ..exceptions import DecodeError, PersistenceError, ProcessingError, ThumbnailError
from ..media.media_storage import MediaStore
from ..repositories.media_repository import MediaRepository
from .external_tools import OcrEngine

logger = logging.getLogger(__name__)

DEFAULT_THUMB_WIDTH = 200
THUMB_JPEG_QUALITY = 85


@dataclass(slots=True, frozen=True)
class ProcessingResult:
    media_id: str
    thumb: Path
    width: int
    height: int
    ocr_text: str


def thumbnail_size(width: int, height: int, target_width: int) -> tuple[int, int]:
    """Scale to ``target_width`` keeping the aspect ratio (height rounded half up, at least 1)."""
    return target_width, max(1, int(height * target_width / width + 0.5))


def make_thumbnail(image: Image.Image, target_width: int) -> Image.Image:
    frame = image if image.mode == "RGB" else image.convert("RGB")
    return frame.resize(
        thumbnail_size(image.width, image.height, target_width),
        Image.Resampling.LANCZOS,
    )


@dataclass(slots=True)
class ImageProcessor:
    """Derive artefacts for ``(media_id, path)`` and complete the record.

    Decode and thumbnail failures abort the job with the record untouched;
    OCR failures degrade to empty text.
    """

    repository: MediaRepository
    store: MediaStore
    ocr_engine: OcrEngine
    thumb_width: int = DEFAULT_THUMB_WIDTH
    log: logging.Logger = field(default_factory=lambda: logger)

    def process(self, media_id: str, path: str | Path) -> ProcessingResult | None:
        source = Path(path)
        try:
            thumb, width, height = self._render_thumbnail(media_id, source)
        except ProcessingError as exc:
            self.log.error(
                "pipeline.image.aborted",
                extra={"media_id": media_id, "path": str(source), "reason": str(exc)},
            )
            return None

        ocr_text = self._extract_text(media_id, source)

        try:
            self.repository.complete_processing(
                media_id,
                thumb=str(thumb),
                width=width,
                height=height,
                ocr_text=ocr_text,
            )
        except PersistenceError as exc:
            self.log.error(
                "pipeline.image.persist_failed",
                extra={"media_id": media_id, "reason": str(exc)},
            )
            return None

        self.log.info(
            "pipeline.image.completed",
            extra={
                "media_id": media_id,
                "width": width,
                "height": height,
                "thumb": str(thumb),
                "ocr_chars": len(ocr_text),
            },
        )
        return ProcessingResult(
            media_id=media_id,
            thumb=thumb,
            width=width,
            height=height,
            ocr_text=ocr_text,
        )

    def _render_thumbnail(self, media_id: str, source: Path) -> tuple[Path, int, int]:
        try:
            image = Image.open(source)
        except (OSError, ValueError, Image.DecompressionBombError) as exc:
            raise DecodeError(f"cannot decode {source}: {exc}") from exc

        with image:
            try:
                image.load()
            except (OSError, ValueError, Image.DecompressionBombError) as exc:
                raise DecodeError(f"cannot decode {source}: {exc}") from exc
            width, height = image.size
            if width < 1 or height < 1:
                raise DecodeError(f"{source} has empty dimensions {width}x{height}")
            thumb_path = self.store.thumb_path(media_id)
            try:
                thumb_path.parent.mkdir(parents=True, exist_ok=True)
                make_thumbnail(image, self.thumb_width).save(
                    thumb_path, format="JPEG", quality=THUMB_JPEG_QUALITY
                )
            except (OSError, ValueError) as exc:
                raise ThumbnailError(f"cannot write thumbnail {thumb_path}: {exc}") from exc
        return thumb_path, width, height

    def _extract_text(self, media_id: str, source: Path) -> str:
        try:
            return self.ocr_engine.extract_text(source)
        except Exception as exc:
            self.log.warning(
                "pipeline.image.ocr_degraded",
                extra={"media_id": media_id, "path": str(source), "error": str(exc)},
            )
            return ""

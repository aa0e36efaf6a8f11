"""Representative still frame for videos and animated GIFs."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from ..exceptions import FrameExtractionError
from ..media.media_storage import MediaStore
from .external_tools import FrameExtractionEngine
from .image_processor import ImageProcessor, ProcessingResult

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class VideoFrameExtractor:
    """Extract the first frame, process it as an image under the video's id.

    The temporary frame is removed afterwards whether or not extraction or
    image processing succeeded.
    """

    image_processor: ImageProcessor
    frame_engine: FrameExtractionEngine
    store: MediaStore
    log: logging.Logger = field(default_factory=lambda: logger)

    def process(self, media_id: str, path: str | Path) -> ProcessingResult | None:
        source = Path(path)
        frame_path = self.store.frame_path(media_id)
        try:
            try:
                self._extract(source, frame_path)
            except FrameExtractionError as exc:
                self.log.error(
                    "pipeline.video.aborted",
                    extra={"media_id": media_id, "path": str(source), "reason": str(exc)},
                )
                return None
            return self.image_processor.process(media_id, frame_path)
        finally:
            self.store.remove_frame(media_id)

    def _extract(self, source: Path, frame_path: Path) -> None:
        frame_path.parent.mkdir(parents=True, exist_ok=True)
        result = self.frame_engine.extract_first_frame(source, frame_path)
        if not result.ok:
            raise FrameExtractionError(f"frame extraction failed for {source}: {result.error}")
        if not frame_path.is_file():
            raise FrameExtractionError(f"frame extraction produced no file at {frame_path}")

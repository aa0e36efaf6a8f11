"""Filesystem layout for uploads and derived artefacts."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from fastapi import UploadFile

from ..config import MediaPaths

_SAFE_SUFFIX = re.compile(r"^\.[A-Za-z0-9]{1,10}$")


@dataclass(slots=True)
class MediaStore:
    """Derives deterministic, id-partitioned paths for every artefact."""

    paths: MediaPaths
    log: logging.Logger = field(default_factory=lambda: logging.getLogger(__name__))

    def ensure_structure(self) -> None:
        for directory in (self.paths.storage, self.paths.thumbs, self.paths.frames):
            directory.mkdir(parents=True, exist_ok=True)

    def upload_path(self, media_id: str, filename: str | None) -> Path:
        suffix = Path(filename or "").suffix
        if not _SAFE_SUFFIX.match(suffix):
            suffix = ""
        return self.paths.storage / f"{media_id}{suffix.lower()}"

    def thumb_path(self, media_id: str) -> Path:
        return self.paths.thumbs / f"{media_id}_thumb.jpg"

    def frame_path(self, media_id: str) -> Path:
        return self.paths.frames / f"{media_id}_frame.jpg"

    async def persist_upload(self, upload: UploadFile, target: Path, *, chunk_size: int) -> int:
        """Copy upload contents to ``target`` and return the number of bytes written."""
        target.parent.mkdir(parents=True, exist_ok=True)
        written = 0
        with target.open("wb") as sink:
            while True:
                chunk = await upload.read(chunk_size)
                if not chunk:
                    break
                sink.write(chunk)
                written += len(chunk)
        await upload.seek(0)
        self.log.info(
            "media.upload.persisted",
            extra={"path": str(target), "size_bytes": written},
        )
        return written

    def remove_frame(self, media_id: str) -> bool:
        """Delete the temporary frame for ``media_id``; failures are logged only."""
        frame = self.frame_path(media_id)
        try:
            frame.unlink(missing_ok=True)
        except OSError as exc:
            self.log.warning(
                "media.frame.remove_failed",
                extra={"media_id": media_id, "path": str(frame), "error": str(exc)},
            )
            return False
        return True

    def list_stale_frames(self, older_than: datetime) -> list[Path]:
        """Return frame files last modified before ``older_than`` (local time)."""
        if not self.paths.frames.exists():
            return []
        cutoff = older_than.timestamp()
        stale = []
        for candidate in sorted(self.paths.frames.glob("*_frame.jpg")):
            try:
                if candidate.stat().st_mtime < cutoff:
                    stale.append(candidate)
            except FileNotFoundError:
                continue
        return stale

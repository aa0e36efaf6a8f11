"""Command-line collaborators: tesseract for OCR, ffmpeg for still frames.

Both are wrapped around :func:`run_tool`, which always applies a timeout and
reports failures as a :class:`ToolResult` instead of raising, so a hung or
missing binary costs a worker at most ``timeout`` seconds.
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, Sequence

logger = logging.getLogger(__name__)

_STDERR_TAIL = 500


@dataclass(slots=True, frozen=True)
class ToolResult:
    ok: bool
    stdout: str = ""
    error: str | None = None
    timed_out: bool = False


def run_tool(args: Sequence[str], *, timeout: float) -> ToolResult:
    """Run an external command to completion or until ``timeout`` elapses."""
    command = [str(arg) for arg in args]
    try:
        completed = subprocess.run(
            command,
            capture_output=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired:
        return ToolResult(ok=False, error=f"timed out after {timeout}s", timed_out=True)
    except OSError as exc:
        return ToolResult(ok=False, error=f"{command[0]}: {exc}")

    stdout = completed.stdout.decode("utf-8", errors="replace")
    if completed.returncode != 0:
        stderr = completed.stderr.decode("utf-8", errors="replace").strip()
        return ToolResult(
            ok=False,
            stdout=stdout,
            error=f"exit code {completed.returncode}: {stderr[-_STDERR_TAIL:]}",
        )
    return ToolResult(ok=True, stdout=stdout)


class OcrEngine(Protocol):
    def extract_text(self, image_path: Path) -> str:
        """Return text found in ``image_path``, or ``""`` on any failure."""


class FrameExtractionEngine(Protocol):
    def extract_first_frame(self, source: Path, destination: Path) -> ToolResult:
        """Write the first frame of ``source`` as a still image at ``destination``."""


@dataclass(slots=True)
class TesseractOcrEngine:
    binary: str = "tesseract"
    language: str = "eng"
    timeout_seconds: float = 60.0

    def extract_text(self, image_path: Path) -> str:
        result = run_tool(
            [self.binary, str(image_path), "stdout", "-l", self.language],
            timeout=self.timeout_seconds,
        )
        if not result.ok:
            logger.warning(
                "pipeline.ocr.failed",
                extra={"path": str(image_path), "error": result.error, "timed_out": result.timed_out},
            )
            return ""
        return result.stdout.strip()


@dataclass(slots=True)
class FfmpegFrameExtractor:
    binary: str = "ffmpeg"
    quality: int = 2
    timeout_seconds: float = 120.0

    def extract_first_frame(self, source: Path, destination: Path) -> ToolResult:
        return run_tool(
            [
                self.binary,
                "-y",
                "-loglevel",
                "error",
                "-i",
                str(source),
                "-vframes",
                "1",
                "-q:v",
                str(self.quality),
                str(destination),
            ],
            timeout=self.timeout_seconds,
        )

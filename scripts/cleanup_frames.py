"""Cron entry point for removing orphaned temporary video frames.

Frames are normally deleted right after processing; files survive only when
a worker died mid-job. This sweeps frames older than ``frame_ttl_hours``.
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass
from datetime import datetime, timedelta

from mediavault.config import load_config
from mediavault.logging import configure_logging
from mediavault.media.media_storage import MediaStore

logger = logging.getLogger("mediavault.scripts.cleanup_frames")


@dataclass(slots=True)
class CleanupSummary:
    frames_removed: int
    dry_run: bool


def perform_cleanup(*, dry_run: bool, reference_time: datetime | None = None) -> CleanupSummary:
    """Execute cleanup logic and return summary counters."""
    config = load_config()
    store = MediaStore(config.media_paths)

    now = reference_time or datetime.now()
    cutoff = now - timedelta(hours=config.pipeline.frame_ttl_hours)
    stale = store.list_stale_frames(cutoff)

    if dry_run:
        return CleanupSummary(frames_removed=len(stale), dry_run=True)

    removed = 0
    for frame in stale:
        try:
            frame.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("media.frame.cleanup_failed", extra={"path": str(frame), "error": str(exc)})
            continue
        removed += 1
        logger.info("media.frame.cleanup.removed", extra={"path": str(frame)})
    return CleanupSummary(frames_removed=removed, dry_run=False)


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Remove orphaned temporary video frames.")
    parser.add_argument("--dry-run", action="store_true", help="Only report counts without deleting files.")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv or [])
    configure_logging()
    try:
        summary = perform_cleanup(dry_run=args.dry_run)
    except Exception as exc:
        print(f"cleanup failed: {exc}", file=sys.stderr)
        return 2

    if summary.dry_run:
        print(f"cleanup dry-run, frames_expired={summary.frames_removed}", file=sys.stdout)
    else:
        print(f"cleanup done, frames_removed={summary.frames_removed}", file=sys.stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))

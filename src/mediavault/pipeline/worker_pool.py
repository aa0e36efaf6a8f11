"""Fixed pool of long-lived worker threads draining the job queue."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from ..media.media_models import ProcessingJob
from .job_queue import JobQueue

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class WorkerStats:
    processed: int = 0
    failed: int = 0


class WorkerPool:
    """Start ``size`` daemon threads that loop dequeue -> handler -> repeat.

    A job that raises is logged and counted; the worker carries on with the
    next job. :meth:`stop` is the only way a worker exits: queued jobs are
    drained first and in-flight jobs are never interrupted.
    """

    def __init__(
        self,
        job_queue: JobQueue,
        handler: Callable[[ProcessingJob], object],
        *,
        size: int,
        name_prefix: str = "media-worker",
    ) -> None:
        if size < 1:
            raise ValueError("worker pool size must be at least 1")
        self._queue = job_queue
        self._handler = handler
        self._size = size
        self._name_prefix = name_prefix
        self._threads: list[threading.Thread] = []
        self._stats = WorkerStats()
        self._stats_lock = threading.Lock()
        self._started = False

    @property
    def size(self) -> int:
        return self._size

    @property
    def is_running(self) -> bool:
        return any(thread.is_alive() for thread in self._threads)

    @property
    def stats(self) -> WorkerStats:
        with self._stats_lock:
            return WorkerStats(processed=self._stats.processed, failed=self._stats.failed)

    def start(self) -> None:
        if self._started:
            logger.warning("pipeline.workers.already_started", extra={"worker_count": self._size})
            return
        self._started = True
        for index in range(1, self._size + 1):
            thread = threading.Thread(
                target=self._run,
                args=(index,),
                name=f"{self._name_prefix}-{index}",
                daemon=True,
            )
            thread.start()
            self._threads.append(thread)
        logger.info("pipeline.workers.started", extra={"worker_count": self._size})

    def stop(self, timeout: float | None = 30.0) -> bool:
        """Signal shutdown and join workers; ``True`` when all of them exited."""
        if not self._threads:
            return True
        deadline = None if timeout is None else time.monotonic() + timeout
        self._queue.close(len(self._threads), timeout=timeout)
        for thread in self._threads:
            remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
            thread.join(remaining)
        alive = [thread.name for thread in self._threads if thread.is_alive()]
        if alive:
            logger.warning("pipeline.workers.stop_timeout", extra={"alive": alive})
            return False
        logger.info("pipeline.workers.stopped", extra={"processed": self.stats.processed})
        return True

    def _run(self, index: int) -> None:
        logger.debug("pipeline.worker.started", extra={"worker": index})
        while True:
            job = self._queue.dequeue()
            if job is None:
                break
            self._process(job, index)
        logger.debug("pipeline.worker.stopped", extra={"worker": index})

    def _process(self, job: ProcessingJob, index: int) -> None:
        started = time.monotonic()
        try:
            self._handler(job)
        except Exception:
            with self._stats_lock:
                self._stats.failed += 1
            logger.exception(
                "pipeline.worker.job_failed",
                extra={"worker": index, "media_id": job.id, "mime_type": job.mime_type},
            )
            return
        with self._stats_lock:
            self._stats.processed += 1
        logger.info(
            "pipeline.worker.job_done",
            extra={
                "worker": index,
                "media_id": job.id,
                "elapsed_ms": round((time.monotonic() - started) * 1000, 1),
            },
        )

"""Bounded FIFO channel between ingestion and the worker pool."""

from __future__ import annotations

import logging
import queue
import threading
import time

from ..exceptions import QueueClosedError, QueueFullError
from ..media.media_models import ProcessingJob

logger = logging.getLogger(__name__)

_SHUTDOWN = object()


class JobQueue:
    """Multi-producer/multi-consumer queue with a fixed capacity.

    ``enqueue`` blocks while the queue is full and never drops a job. Jobs
    carry no acknowledgement: once dequeued they are not requeued.

    Producers wait on ``_space`` instead of inside ``queue.Queue.put`` so that
    ``close`` can reject them; every accepted job precedes the shutdown
    sentinels.
    """

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ValueError("queue capacity must be at least 1")
        self.capacity = capacity
        self._queue: queue.Queue[object] = queue.Queue(maxsize=capacity)
        self._space = threading.Condition()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def qsize(self) -> int:
        return self._queue.qsize()

    def enqueue(self, job: ProcessingJob, *, timeout: float | None = None) -> None:
        """Add ``job``, waiting for a free slot (at most ``timeout`` seconds if given)."""
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._space:
            while True:
                if self._closed:
                    raise QueueClosedError(f"queue closed, job '{job.id}' rejected")
                try:
                    self._queue.put_nowait(job)
                    break
                except queue.Full:
                    remaining = None if deadline is None else deadline - time.monotonic()
                    if remaining is not None and remaining <= 0:
                        logger.warning(
                            "pipeline.queue.full",
                            extra={"media_id": job.id, "capacity": self.capacity, "timeout": timeout},
                        )
                        raise QueueFullError(
                            f"queue full after {timeout}s, job '{job.id}' not accepted"
                        ) from None
                    self._space.wait(remaining)
        logger.debug("pipeline.queue.enqueued", extra={"media_id": job.id, "queue_size": self.qsize()})

    def dequeue(self, *, timeout: float | None = None) -> ProcessingJob | None:
        """Next job in arrival order; ``None`` on timeout or shutdown signal."""
        try:
            item = self._queue.get(block=True, timeout=timeout)
        except queue.Empty:
            return None
        with self._space:
            self._space.notify()
        if item is _SHUTDOWN:
            return None
        return item  # type: ignore[return-value]

    def close(self, consumers: int, *, timeout: float | None = None) -> int:
        """Reject new and waiting producers, then wake ``consumers`` readers.

        Returns how many shutdown signals were delivered.
        """
        with self._space:
            self._closed = True
            self._space.notify_all()
        delivered = 0
        for _ in range(consumers):
            try:
                self._queue.put(_SHUTDOWN, block=True, timeout=timeout)
            except queue.Full:
                logger.warning(
                    "pipeline.queue.close_incomplete",
                    extra={"delivered": delivered, "consumers": consumers},
                )
                break
            delivered += 1
        return delivered

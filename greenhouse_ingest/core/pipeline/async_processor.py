"""Async processor: decouples the paho callback from blocking DB writes.

Wraps IngestProcessor with a bounded queue + worker threads so the paho
network loop thread returns right after enqueue instead of waiting on
device provisioning and inserts.
"""

from __future__ import annotations

import logging
import queue
import threading

from .jobs import IngestJob
from .processor import IngestProcessor

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_SIZE = 1000
DEFAULT_NUM_WORKERS = 4


class AsyncIngestProcessor:
    """Queue + worker threads around IngestProcessor.

    - paho callback → submit() returns immediately
    - Worker threads → process() blocks on the DB (in parallel)
    - Bounded queue: when full the job is dropped, never blocks the caller
    """

    def __init__(
        self,
        processor: IngestProcessor,
        max_queue_size: int = DEFAULT_QUEUE_SIZE,
        num_workers: int = DEFAULT_NUM_WORKERS,
    ):
        self._processor = processor
        self._queue: queue.Queue = queue.Queue(maxsize=max_queue_size)
        self._num_workers = num_workers
        self._stop_event = threading.Event()
        self._accepting = False

        # Metrics
        self._enqueued = 0
        self._dropped = 0
        self._processed = 0
        self._errors = 0
        self._lock = threading.Lock()

        self._workers: list[threading.Thread] = []

    def start(self) -> None:
        """Start worker threads."""
        self._stop_event.clear()
        for i in range(self._num_workers):
            t = threading.Thread(
                target=self._worker_loop,
                args=(i,),
                daemon=True,
                name=f"ingest-worker-{i}",
            )
            t.start()
            self._workers.append(t)
        self._accepting = True
        logger.info(
            "[ASYNC_PROC] Started workers=%d queue_max=%d",
            self._num_workers, self._queue.maxsize,
        )

    def stop(self, drain: bool = True) -> None:
        """Stop workers. If drain=True, process remaining jobs first."""
        self._accepting = False
        if drain:
            self._queue.join()
        self._stop_event.set()
        for t in self._workers:
            t.join(timeout=5.0)
        self._workers.clear()
        logger.info("[ASYNC_PROC] Stopped. %s", self.metrics)

    def submit(self, job: IngestJob) -> bool:
        """Enqueue a job. Returns False if stopped or the queue is full."""
        if not self._accepting:
            with self._lock:
                self._dropped += 1
            logger.debug("[ASYNC_PROC] Not accepting, dropped device=%s", job.device_id)
            return False

        try:
            self._queue.put_nowait(job)
        except queue.Full:
            with self._lock:
                self._dropped += 1
            logger.warning("[ASYNC_PROC] Queue full, dropped device=%s", job.device_id)
            return False

        with self._lock:
            self._enqueued += 1
        return True

    def _worker_loop(self, worker_id: int) -> None:
        while not self._stop_event.is_set():
            try:
                job = self._queue.get(timeout=0.5)
            except queue.Empty:
                continue

            try:
                self._processor.process(job)
                with self._lock:
                    self._processed += 1
            except Exception:
                with self._lock:
                    self._errors += 1
                logger.exception("[ASYNC_PROC] Worker %d error device=%s", worker_id, job.device_id)
            finally:
                self._queue.task_done()

    @property
    def is_accepting(self) -> bool:
        return self._accepting

    @property
    def metrics(self) -> dict:
        with self._lock:
            return {
                "queue_depth": self._queue.qsize(),
                "queue_max": self._queue.maxsize,
                "workers": len(self._workers),
                "enqueued": self._enqueued,
                "dropped": self._dropped,
                "processed": self._processed,
                "errors": self._errors,
            }

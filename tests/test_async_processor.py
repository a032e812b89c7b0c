"""Tests del pool de workers."""

import threading
from unittest.mock import MagicMock

from greenhouse_ingest.core.pipeline import AsyncIngestProcessor, StatusJob


def _job(n: int = 1) -> StatusJob:
    return StatusJob(device_id=f"ESP32_{n:03d}", status="online")


class TestAsyncIngestProcessor:

    def test_processes_jobs(self):
        processor = MagicMock()
        workers = AsyncIngestProcessor(processor, max_queue_size=10, num_workers=2)
        workers.start()

        for i in range(5):
            assert workers.submit(_job(i)) is True
        workers.stop(drain=True)

        assert processor.process.call_count == 5
        assert workers.metrics["processed"] == 5
        assert workers.metrics["enqueued"] == 5

    def test_rejects_before_start(self):
        workers = AsyncIngestProcessor(MagicMock())
        assert workers.submit(_job()) is False
        assert workers.metrics["dropped"] == 1

    def test_full_queue_drops(self):
        release = threading.Event()
        processor = MagicMock()
        processor.process.side_effect = lambda job: release.wait(5)
        workers = AsyncIngestProcessor(processor, max_queue_size=1, num_workers=1)
        workers.start()

        results = [workers.submit(_job(i)) for i in range(10)]
        release.set()
        workers.stop(drain=True)

        assert results[0] is True
        assert False in results
        assert workers.metrics["dropped"] == results.count(False)

    def test_worker_survives_errors(self):
        processor = MagicMock()
        processor.process.side_effect = [RuntimeError("boom"), True]
        workers = AsyncIngestProcessor(processor, max_queue_size=10, num_workers=1)
        workers.start()

        workers.submit(_job(1))
        workers.submit(_job(2))
        workers.stop(drain=True)

        assert workers.metrics["errors"] == 1
        assert workers.metrics["processed"] == 1

    def test_stop_rejects_new_jobs(self):
        workers = AsyncIngestProcessor(MagicMock(), num_workers=1)
        workers.start()
        workers.stop()

        assert not workers.is_accepting
        assert workers.submit(_job()) is False

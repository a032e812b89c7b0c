"""Pipeline - Procesamiento de trabajos de ingesta."""

from .async_processor import AsyncIngestProcessor
from .jobs import IngestJob, StatusJob, TelemetryJob
from .processor import IngestProcessor

__all__ = [
    "AsyncIngestProcessor",
    "IngestJob",
    "IngestProcessor",
    "StatusJob",
    "TelemetryJob",
]

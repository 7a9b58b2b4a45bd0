"""
Notification-driven ingestion pipeline.

Flow for every message received from the queue:

1. Decode the base64 JSON body into object descriptors
2. Filter descriptors (directory markers, prefix, exclude pattern)
3. Stream each object's lines, gunzipping .gz/.gzip keys
4. Intercept #Version/#Fields header lines as per-object metadata
5. Decode data lines with the codec, enrich and push records to the sink
6. Back up and optionally delete the source object
7. Acknowledge the message

Example:
    >>> from oss_ingest.config import load_settings
    >>> from oss_ingest.ingest import build_scheduler
    >>> from oss_ingest.sinks import MemorySink
    >>>
    >>> scheduler = build_scheduler(load_settings(), MemorySink())
    >>> stats = scheduler.run(drain=True)
    >>> print(f"Emitted {stats.records_emitted} records")
"""

from oss_ingest.ingest.emitter import RecordEmitter
from oss_ingest.ingest.filter import ObjectFilter
from oss_ingest.ingest.metadata import (
    DataLine,
    MetadataLine,
    ObjectMetadataState,
    classify_line,
)
from oss_ingest.ingest.notifications import NotificationDecoder, decode_notification
from oss_ingest.ingest.pipeline import NotificationProcessor
from oss_ingest.ingest.postprocess import PostProcessor
from oss_ingest.ingest.reader import ObjectLineReader, ObjectLines, is_gzip
from oss_ingest.ingest.scheduler import (
    IngestionScheduler,
    SchedulerState,
    build_processor,
    build_scheduler,
)

__all__ = [
    "DataLine",
    "IngestionScheduler",
    "MetadataLine",
    "NotificationDecoder",
    "NotificationProcessor",
    "ObjectFilter",
    "ObjectLineReader",
    "ObjectLines",
    "ObjectMetadataState",
    "PostProcessor",
    "RecordEmitter",
    "SchedulerState",
    "build_processor",
    "build_scheduler",
    "classify_line",
    "decode_notification",
    "is_gzip",
]

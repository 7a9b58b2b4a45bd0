"""
OSS Ingest

Notification-driven ingestion of log objects from Aliyun OSS buckets.

OSS publishes object-change events to an MNS queue; this package polls
the queue, streams the referenced objects (gunzipping where needed),
splits them into records, enriches them with header metadata and object
provenance, hands them to a sink, and then backs up or deletes the
source objects.

Features:
- MNS long-polling with cooperative, signal-safe shutdown
- Streaming gzip/UTF-8 line reader with guaranteed stream release
- CloudFront-style #Version/#Fields header extraction
- Pluggable codecs and sinks
- Backup to bucket, backup to local directory, delete after processing

Example:
    >>> from oss_ingest import build_scheduler, load_settings, JSONLinesSink
    >>> import sys
    >>>
    >>> scheduler = build_scheduler(load_settings(), JSONLinesSink(sys.stdout))
    >>> scheduler.run()

For more information run:
    $ oss-ingest --help
"""

__version__ = "1.0.0"

from oss_ingest.config.settings import Settings, get_settings, load_settings
from oss_ingest.errors import (
    ConfigurationError,
    DecodeError,
    IngestError,
    LineDecodeError,
    ObjectReadError,
    TransientBackendError,
)
from oss_ingest.ingest.scheduler import IngestionScheduler, build_scheduler
from oss_ingest.models import NotificationMessage, ObjectChangeDescriptor, Record
from oss_ingest.queue import InMemoryQueue, MNSQueue, NotificationQueue
from oss_ingest.sinks import JSONLinesSink, MemorySink, RecordSink
from oss_ingest.storage import InMemoryObjectStore, ObjectStore, OSSObjectStore

__all__ = [
    "ConfigurationError",
    "DecodeError",
    "InMemoryObjectStore",
    "InMemoryQueue",
    "IngestError",
    "IngestionScheduler",
    "JSONLinesSink",
    "LineDecodeError",
    "MNSQueue",
    "MemorySink",
    "NotificationMessage",
    "NotificationQueue",
    "OSSObjectStore",
    "ObjectChangeDescriptor",
    "ObjectReadError",
    "ObjectStore",
    "Record",
    "RecordSink",
    "Settings",
    "TransientBackendError",
    "__version__",
    "build_scheduler",
    "get_settings",
    "load_settings",
]

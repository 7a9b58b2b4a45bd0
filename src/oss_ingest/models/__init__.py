"""
Data models for the OSS ingestion pipeline.

- NotificationMessage / ObjectChangeDescriptor: what arrives from the queue
- Record: what leaves towards the sink
- ObjectResult / NotificationResult / SchedulerStats: what happened
"""

from oss_ingest.models.notification import NotificationMessage, ObjectChangeDescriptor
from oss_ingest.models.records import PROVENANCE_NAMESPACE, Record
from oss_ingest.models.results import (
    NotificationResult,
    ObjectOutcome,
    ObjectResult,
    SchedulerStats,
    SkipReason,
)

__all__ = [
    "PROVENANCE_NAMESPACE",
    "NotificationMessage",
    "NotificationResult",
    "ObjectChangeDescriptor",
    "ObjectOutcome",
    "ObjectResult",
    "Record",
    "SchedulerStats",
    "SkipReason",
]

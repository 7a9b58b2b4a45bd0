"""
Record sinks for the OSS ingestion pipeline.

- MemorySink: collects records in memory
- JSONLinesSink: writes newline-delimited JSON to a file or stream
"""

from oss_ingest.sinks.jsonl import JSONLinesSink
from oss_ingest.sinks.memory import MemorySink
from oss_ingest.sinks.protocol import RecordSink

__all__ = [
    "JSONLinesSink",
    "MemorySink",
    "RecordSink",
]

"""
Error taxonomy for the OSS ingestion pipeline.

Startup problems raise ConfigurationError and abort initialization.
Everything raised while the scheduler is running is handled per message
or per object and logged; the loop itself keeps going.

Hierarchy:
    IngestError
    ├── ConfigurationError
    ├── DecodeError            (notification body malformed)
    ├── ObjectReadError        (object content could not be read)
    ├── LineDecodeError        (codec failed on a line)
    └── TransientBackendError
        ├── StorageError
        │   └── ObjectNotFoundError
        └── QueueError
"""

from __future__ import annotations


class IngestError(Exception):
    """Base class for all pipeline errors."""


class ConfigurationError(IngestError):
    """Invalid or inconsistent configuration detected at startup."""


class DecodeError(IngestError):
    """A notification body could not be decoded into descriptors."""


class ObjectReadError(IngestError):
    """Reading, decompressing or text-decoding an object failed.

    Attributes:
        key: Object key that failed
    """

    def __init__(self, key: str, reason: str):
        super().__init__(f"failed to read object {key!r}: {reason}")
        self.key = key
        self.reason = reason


class LineDecodeError(IngestError):
    """The codec raised while decoding one line of an object.

    Attributes:
        key: Object key being processed
        line_number: 1-based line number within the object
    """

    def __init__(self, key: str, line_number: int, reason: str):
        super().__init__(f"failed to decode line {line_number} of {key!r}: {reason}")
        self.key = key
        self.line_number = line_number
        self.reason = reason


class TransientBackendError(IngestError):
    """A network or backend failure talking to storage or the queue."""


class StorageError(TransientBackendError):
    """Object storage operation failed."""


class ObjectNotFoundError(StorageError):
    """The requested bucket or object does not exist."""


class QueueError(TransientBackendError):
    """Message queue operation failed."""

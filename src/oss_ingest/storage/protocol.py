"""
Object storage protocol.

The pipeline only needs a handful of operations from the object store:
stream an object, copy it server-side, download it to a file, delete it,
and make sure a bucket exists.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, BinaryIO, Protocol, runtime_checkable


@dataclass
class StoredObject:
    """An open object: its content stream plus raw properties.

    The caller owns ``body`` and must close it.

    Attributes:
        body: Binary stream of the object content
        properties: Raw object properties (HTTP headers, user metadata)
    """

    body: BinaryIO
    properties: dict[str, Any] = field(default_factory=dict)


@runtime_checkable
class ObjectStore(Protocol):
    """Interface for object storage backends.

    Implementations:
    - OSSObjectStore: Aliyun OSS through its S3-compatible API
    - InMemoryObjectStore: dict-backed store for tests and dry runs

    All methods raise StorageError (or ObjectNotFoundError) on failure.
    """

    def get_object(self, bucket: str, key: str) -> StoredObject:
        """Open an object for streaming."""
        ...

    def copy_object(self, src_bucket: str, src_key: str, dst_bucket: str, dst_key: str) -> None:
        """Copy an object server-side."""
        ...

    def download_object(self, bucket: str, key: str, path: Path) -> None:
        """Download an object to a local file (parent directory must exist)."""
        ...

    def delete_object(self, bucket: str, key: str) -> None:
        """Delete an object."""
        ...

    def bucket_exists(self, bucket: str) -> bool:
        """Check whether a bucket exists."""
        ...

    def create_bucket(self, bucket: str) -> None:
        """Create a bucket."""
        ...

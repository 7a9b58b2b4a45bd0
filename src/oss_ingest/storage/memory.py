"""
In-memory object store for tests and dry runs.

Example:
    >>> store = InMemoryObjectStore()
    >>> store.put_object("logs", "app.log", b"line 1\\nline 2\\n")
    >>> obj = store.get_object("logs", "app.log")
    >>> obj.body.read()
    b'line 1\\nline 2\\n'
"""

from __future__ import annotations

import io
from datetime import UTC, datetime
from email.utils import format_datetime
from pathlib import Path
from typing import Any

from oss_ingest.errors import ObjectNotFoundError, StorageError
from oss_ingest.storage.protocol import StoredObject


class TrackedBytesIO(io.BytesIO):
    """BytesIO that remembers it was closed, so tests can check release."""

    def __init__(self, data: bytes, registry: list[TrackedBytesIO]):
        super().__init__(data)
        self.was_closed = False
        registry.append(self)

    def close(self) -> None:
        self.was_closed = True
        super().close()


class InMemoryObjectStore:
    """Dict-backed ObjectStore.

    Attributes:
        buckets: bucket name -> {key: (content, properties)}
        opened_streams: Every stream handed out by get_object
        failing_operations: Operation names that raise StorageError
    """

    def __init__(self, buckets: list[str] | None = None):
        self.buckets: dict[str, dict[str, tuple[bytes, dict[str, Any]]]] = {
            name: {} for name in buckets or []
        }
        self.opened_streams: list[TrackedBytesIO] = []
        self.failing_operations: set[str] = set()

    def put_object(
        self,
        bucket: str,
        key: str,
        content: bytes | str,
        properties: dict[str, Any] | None = None,
    ) -> None:
        if isinstance(content, str):
            content = content.encode("utf-8")
        props = {
            "content-length": str(len(content)),
            "content-type": "application/octet-stream",
            "last-modified": format_datetime(datetime.now(UTC), usegmt=True),
        }
        props.update(properties or {})
        self.buckets.setdefault(bucket, {})[key] = (content, props)

    def has_object(self, bucket: str, key: str) -> bool:
        return key in self.buckets.get(bucket, {})

    def list_keys(self, bucket: str, prefix: str = "") -> list[str]:
        return sorted(k for k in self.buckets.get(bucket, {}) if k.startswith(prefix))

    def _check(self, operation: str) -> None:
        if operation in self.failing_operations:
            raise StorageError(f"injected failure in {operation}")

    def _lookup(self, bucket: str, key: str) -> tuple[bytes, dict[str, Any]]:
        if bucket not in self.buckets:
            raise ObjectNotFoundError(f"bucket {bucket!r} does not exist")
        try:
            return self.buckets[bucket][key]
        except KeyError:
            raise ObjectNotFoundError(f"object {bucket}/{key} does not exist") from None

    def get_object(self, bucket: str, key: str) -> StoredObject:
        self._check("get_object")
        content, props = self._lookup(bucket, key)
        return StoredObject(body=TrackedBytesIO(content, self.opened_streams), properties=dict(props))

    def copy_object(self, src_bucket: str, src_key: str, dst_bucket: str, dst_key: str) -> None:
        self._check("copy_object")
        content, props = self._lookup(src_bucket, src_key)
        if dst_bucket not in self.buckets:
            raise ObjectNotFoundError(f"bucket {dst_bucket!r} does not exist")
        self.buckets[dst_bucket][dst_key] = (content, dict(props))

    def download_object(self, bucket: str, key: str, path: Path) -> None:
        self._check("download_object")
        content, _props = self._lookup(bucket, key)
        Path(path).write_bytes(content)

    def delete_object(self, bucket: str, key: str) -> None:
        self._check("delete_object")
        self.buckets.get(bucket, {}).pop(key, None)

    def bucket_exists(self, bucket: str) -> bool:
        self._check("bucket_exists")
        return bucket in self.buckets

    def create_bucket(self, bucket: str) -> None:
        self._check("create_bucket")
        self.buckets.setdefault(bucket, {})

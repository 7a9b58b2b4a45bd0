"""
Object storage backends for the OSS ingestion pipeline.

- OSSObjectStore: Aliyun OSS via boto3 (S3-compatible API)
- InMemoryObjectStore: dict-backed store for tests and dry runs

To implement a custom store, see ``storage/protocol.py`` for the interface.
"""

from oss_ingest.storage.memory import InMemoryObjectStore
from oss_ingest.storage.oss import OSSObjectStore
from oss_ingest.storage.protocol import ObjectStore, StoredObject

__all__ = [
    "InMemoryObjectStore",
    "OSSObjectStore",
    "ObjectStore",
    "StoredObject",
]

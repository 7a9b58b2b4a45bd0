"""In-memory sink collecting records in order."""

from __future__ import annotations

import threading
from collections.abc import Iterator

from oss_ingest.models import Record


class MemorySink:
    """Append-only list of records, safe to read from another thread."""

    def __init__(self) -> None:
        self._records: list[Record] = []
        self._lock = threading.Lock()

    def push(self, record: Record) -> None:
        with self._lock:
            self._records.append(record)

    @property
    def records(self) -> list[Record]:
        """Snapshot of pushed records."""
        with self._lock:
            return list(self._records)

    def messages(self) -> list[str | None]:
        return [record.message for record in self.records]

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def __iter__(self) -> Iterator[Record]:
        return iter(self.records)

    def close(self) -> None:
        pass

"""
JSON lines sink.

Writes one JSON document per record, either to a file path or to an
already open text stream such as stdout.

Example:
    >>> with JSONLinesSink("records.jsonl") as sink:
    ...     sink.push(Record(message="hello"))
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import IO

from oss_ingest.models import Record


class JSONLinesSink:
    """Serialize records as newline-delimited JSON."""

    def __init__(
        self,
        target: str | Path | IO[str],
        *,
        include_metadata: bool = False,
    ):
        """Initialize sink.

        Args:
            target: File path (opened for append) or writable text stream
            include_metadata: Also write the ``@metadata`` namespace
        """
        if isinstance(target, (str, Path)):
            self._stream: IO[str] = open(target, "a", encoding="utf-8")
            self._owns_stream = True
        else:
            self._stream = target
            self._owns_stream = False
        self.include_metadata = include_metadata
        self.count = 0

    def push(self, record: Record) -> None:
        document = record.to_dict(include_metadata=self.include_metadata)
        self._stream.write(json.dumps(document, default=str, ensure_ascii=False))
        self._stream.write("\n")
        self.count += 1

    def close(self) -> None:
        if self._owns_stream:
            if not self._stream.closed:
                self._stream.close()
        else:
            self._stream.flush()

    def __enter__(self) -> JSONLinesSink:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

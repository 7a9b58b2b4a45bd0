"""
Record sink protocol.

The sink is the downstream consumer of enriched records. It is append
only: once pushed, a record belongs to the sink.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from oss_ingest.models import Record


@runtime_checkable
class RecordSink(Protocol):
    """Interface for record sinks.

    Implementations:
    - MemorySink: keeps records in a list (tests, embedding)
    - JSONLinesSink: writes one JSON document per record to a stream
    """

    def push(self, record: "Record") -> None:
        """Append a record. Ownership moves to the sink."""
        ...

    def close(self) -> None:
        """Flush and release resources. Safe to call more than once."""
        ...

"""
Record emission.

Drives the codec over an object's data lines, enriches every record it
produces and pushes it to the sink:

- ``cloudfront_version`` / ``cloudfront_fields`` when header lines set them
- provenance under ``metadata["oss"]``: the raw object properties
  (stringified) when ``include_object_properties`` is on, and always the
  object ``key``

After the last line the codec is flushed and residual records get the
same enrichment using the final metadata state.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

import structlog

from oss_ingest.codecs.protocol import Codec
from oss_ingest.errors import LineDecodeError
from oss_ingest.ingest.metadata import MetadataLine, ObjectMetadataState, classify_line
from oss_ingest.models import PROVENANCE_NAMESPACE, Record
from oss_ingest.sinks.protocol import RecordSink

logger = structlog.get_logger(__name__)


class RecordEmitter:
    """Turn an object's lines into enriched records on a sink."""

    def __init__(
        self,
        codec: Codec,
        sink: RecordSink,
        *,
        include_object_properties: bool = False,
    ):
        self.codec = codec
        self.sink = sink
        self.include_object_properties = include_object_properties

    def emit_object(self, key: str, lines: Iterable[str], properties: dict[str, Any]) -> int:
        """Emit all records for one object.

        Args:
            key: Object key (provenance)
            lines: The object's lines, in stream order
            properties: Raw object properties

        Returns:
            Number of records pushed to the sink

        Raises:
            LineDecodeError: If the codec fails on a line or on flush
            ObjectReadError: Propagated from ``lines``
        """
        try:
            return self._emit(key, lines, properties)
        except Exception:
            self._discard_pending(key)
            raise

    def _discard_pending(self, key: str) -> None:
        # Buffered lines of a failed object must not leak into the next one
        try:
            dropped = len(list(self.codec.flush()))
        except Exception as e:
            logger.warning("codec_reset_failed", key=key, error=str(e))
            return
        if dropped:
            logger.warning("buffered_records_dropped", key=key, count=dropped)

    def _emit(self, key: str, lines: Iterable[str], properties: dict[str, Any]) -> int:
        state = ObjectMetadataState()
        emitted = 0
        line_number = 0

        for line_number, line in enumerate(lines, start=1):
            classified = classify_line(line)
            if isinstance(classified, MetadataLine):
                state.apply(classified)
                logger.debug(
                    "object_metadata_updated",
                    key=key,
                    field=classified.kind.value,
                    value=classified.value,
                )
                continue

            try:
                records = list(self.codec.decode(classified.text))
            except Exception as e:
                raise LineDecodeError(key, line_number, str(e)) from e

            for record in records:
                self._push(record, key, state, properties)
                emitted += 1

        try:
            residual = list(self.codec.flush())
        except Exception as e:
            raise LineDecodeError(key, line_number + 1, f"flush failed: {e}") from e

        for record in residual:
            self._push(record, key, state, properties)
            emitted += 1

        return emitted

    def _push(
        self,
        record: Record,
        key: str,
        state: ObjectMetadataState,
        properties: dict[str, Any],
    ) -> None:
        for name, value in state.as_fields().items():
            record.set(name, value)

        if self.include_object_properties:
            provenance = {str(name): str(value) for name, value in properties.items()}
        else:
            provenance = {}
        provenance["key"] = key
        record.metadata[PROVENANCE_NAMESPACE] = provenance

        self.sink.push(record)

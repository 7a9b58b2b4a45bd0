"""Plain codec: one record per line, the line kept as ``message``."""

from __future__ import annotations

from collections.abc import Iterator

from oss_ingest.codecs.protocol import register_codec
from oss_ingest.models import Record


@register_codec("plain")
class PlainCodec:
    """Emit every line verbatim."""

    codec_name = "plain"

    def decode(self, line: str) -> Iterator[Record]:
        yield Record(message=line)

    def flush(self) -> list[Record]:
        return []

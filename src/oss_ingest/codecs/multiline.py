"""
Multiline codec.

Joins continuation lines onto the line before them, the usual shape of
stack traces in application logs:

    2024-01-01 ERROR boom
        at Foo.bar(Foo.java:10)
        at Foo.main(Foo.java:3)

A record is released when the next non-continuation line arrives, so the
last record of an object is only released by ``flush()``.
"""

from __future__ import annotations

import re
from collections.abc import Iterator

from oss_ingest.codecs.protocol import register_codec
from oss_ingest.models import Record

DEFAULT_CONTINUATION = r"^\s"


@register_codec("multiline")
class MultilineCodec:
    """Buffer continuation lines into a single record.

    Attributes:
        pattern: Regexp matching continuation lines
        max_lines: Release the buffer once it holds this many lines
    """

    codec_name = "multiline"

    def __init__(self, pattern: str = DEFAULT_CONTINUATION, *, max_lines: int = 500):
        self.pattern = re.compile(pattern)
        self.max_lines = max_lines
        self._buffer: list[str] = []

    def decode(self, line: str) -> Iterator[Record]:
        if self._buffer and self.pattern.search(line):
            self._buffer.append(line)
            if len(self._buffer) >= self.max_lines:
                yield from self.flush()
            return

        yield from self.flush()
        self._buffer.append(line)

    def flush(self) -> list[Record]:
        if not self._buffer:
            return []
        record = Record(message="\n".join(self._buffer))
        if len(self._buffer) > 1:
            record.add_tag("multiline")
        self._buffer = []
        return [record]

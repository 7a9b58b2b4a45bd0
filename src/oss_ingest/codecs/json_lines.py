"""
JSON lines codec.

Each line is parsed as a JSON object whose keys become record fields.
Blank lines produce nothing. Lines that are not JSON objects are kept
as ``message`` and tagged ``_jsonparsefailure`` so nothing is lost.
"""

from __future__ import annotations

import json
from collections.abc import Iterator

import structlog

from oss_ingest.codecs.protocol import register_codec
from oss_ingest.models import Record

logger = structlog.get_logger(__name__)

PARSE_FAILURE_TAG = "_jsonparsefailure"


@register_codec("json_lines")
class JSONLinesCodec:
    """Decode newline-delimited JSON."""

    codec_name = "json_lines"

    def decode(self, line: str) -> Iterator[Record]:
        if not line.strip():
            return

        try:
            parsed = json.loads(line)
        except json.JSONDecodeError as e:
            logger.debug("json_parse_failed", error=str(e), line=line[:100])
            yield Record(message=line, tags=[PARSE_FAILURE_TAG])
            return

        if not isinstance(parsed, dict):
            yield Record(message=line, tags=[PARSE_FAILURE_TAG])
            return

        # A string "message" key maps onto Record.message
        if isinstance(parsed.get("message"), str):
            message = parsed.pop("message")
            yield Record(message=message, data=parsed)
        else:
            yield Record(data=parsed)

    def flush(self) -> list[Record]:
        return []

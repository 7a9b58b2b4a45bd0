"""
Line codecs for the OSS ingestion pipeline.

- PlainCodec ("plain"): one record per line
- JSONLinesCodec ("json_lines"): newline-delimited JSON objects
- MultilineCodec ("multiline"): joins indented continuation lines

To implement a custom codec, see ``codecs/protocol.py`` for the interface.
"""

from oss_ingest.codecs.json_lines import JSONLinesCodec
from oss_ingest.codecs.multiline import MultilineCodec
from oss_ingest.codecs.plain import PlainCodec
from oss_ingest.codecs.protocol import Codec, get_codec, list_codecs, register_codec

__all__ = [
    "Codec",
    "JSONLinesCodec",
    "MultilineCodec",
    "PlainCodec",
    "get_codec",
    "list_codecs",
    "register_codec",
]

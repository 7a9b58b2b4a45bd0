"""
Object line reader.

Opens an object, transparently gunzips keys ending in ``.gz`` or
``.gzip``, decodes UTF-8 and yields lines without their terminators.
A final line without a trailing newline is still yielded.

Every stream acquired for an object (the raw body, the gzip wrapper and
the text wrapper) is released when the ``open()`` block exits, whether
the consumer read to the end, stopped early, or hit an error.

Example:
    >>> reader = ObjectLineReader(store)
    >>> with reader.open("my-log-bucket", "logs/app.log.gz") as obj:
    ...     for line in obj.lines:
    ...         print(line)
"""

from __future__ import annotations

import gzip
import io
import zlib
from collections.abc import Iterator
from contextlib import ExitStack, contextmanager
from typing import IO, Any, NamedTuple

import structlog

from oss_ingest.errors import ObjectReadError, StorageError
from oss_ingest.storage.protocol import ObjectStore

logger = structlog.get_logger(__name__)

GZIP_SUFFIXES = (".gz", ".gzip")

# Exceptions raised while pulling bytes through the stream stack
_READ_ERRORS = (OSError, EOFError, zlib.error, UnicodeError, StorageError)


def is_gzip(key: str) -> bool:
    """True if the key names a gzip-compressed object."""
    return key.endswith(GZIP_SUFFIXES)


class ObjectLines(NamedTuple):
    """An open object: a single-pass line iterator plus raw properties."""

    lines: Iterator[str]
    properties: dict[str, Any]


class ObjectLineReader:
    """Stream objects from a store as text lines."""

    def __init__(self, store: ObjectStore, *, encoding: str = "utf-8"):
        self.store = store
        self.encoding = encoding

    @contextmanager
    def open(self, bucket: str, key: str) -> Iterator[ObjectLines]:
        """Open an object for line iteration.

        Raises:
            ObjectReadError: If the object cannot be fetched, or (while
                iterating ``lines``) if decompression or decoding fails
        """
        with ExitStack() as stack:
            try:
                stored = self.store.get_object(bucket, key)
            except StorageError as e:
                raise ObjectReadError(key, str(e)) from e
            stack.callback(stored.body.close)

            stream: IO[bytes] = stored.body
            if is_gzip(key):
                stream = stack.enter_context(gzip.GzipFile(fileobj=stream, mode="rb"))

            text = stack.enter_context(io.TextIOWrapper(stream, encoding=self.encoding))
            yield ObjectLines(lines=self._iter_lines(text, key), properties=stored.properties)

        logger.debug("object_streams_released", key=key)

    @staticmethod
    def _iter_lines(text: io.TextIOWrapper, key: str) -> Iterator[str]:
        try:
            for line in text:
                yield line[:-1] if line.endswith("\n") else line
        except _READ_ERRORS as e:
            raise ObjectReadError(key, f"{type(e).__name__}: {e}") from e

"""
Codec protocol for the OSS ingestion pipeline.

A codec turns one text line into zero or more records. Codecs that
buffer (e.g. multiline) release what they hold on ``flush()``, which the
pipeline calls once at the end of every object.

Example - Implementing a custom codec:
    >>> from oss_ingest.codecs import register_codec
    >>>
    >>> @register_codec("csv")
    >>> class CSVCodec:
    ...     codec_name = "csv"
    ...
    ...     def decode(self, line):
    ...         yield Record(message=line, data=dict(zip(COLUMNS, line.split(","))))
    ...
    ...     def flush(self):
    ...         return []

Using registered codecs:
    >>> from oss_ingest.codecs import get_codec
    >>> codec = get_codec("json_lines")
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from oss_ingest.models import Record


# Registry of available codecs
_CODEC_REGISTRY: dict[str, type] = {}


@runtime_checkable
class Codec(Protocol):
    """Interface for line codecs."""

    @property
    def codec_name(self) -> str:
        """Registry name of the codec."""
        ...

    def decode(self, line: str) -> Iterable["Record"]:
        """Decode one line (without its newline) into records."""
        ...

    def flush(self) -> Iterable["Record"]:
        """Release any buffered records and reset internal state."""
        ...


def register_codec(name: str):
    """Decorator to register a codec implementation under ``name``."""

    def decorator(cls: type) -> type:
        if name in _CODEC_REGISTRY:
            raise ValueError(f"Codec '{name}' is already registered")
        _CODEC_REGISTRY[name] = cls
        return cls

    return decorator


def get_codec(name: str, *args, **kwargs) -> Codec:
    """Instantiate a registered codec by name.

    Raises:
        KeyError: If the codec is not registered
    """
    if name not in _CODEC_REGISTRY:
        available = ", ".join(sorted(_CODEC_REGISTRY))
        raise KeyError(f"Codec '{name}' not found. Available: {available}")

    return _CODEC_REGISTRY[name](*args, **kwargs)


def list_codecs() -> list[str]:
    """List all registered codec names."""
    return sorted(_CODEC_REGISTRY)


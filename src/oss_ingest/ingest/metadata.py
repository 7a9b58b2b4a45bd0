"""
Header metadata extraction.

CloudFront-style access logs start with header lines:

    #Version: 1.0
    #Fields: date time x-edge-location sc-bytes ...

Lines are classified before they reach the codec: header lines update
the per-object ObjectMetadataState and are never emitted as records;
everything else is a data line.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class MetadataKind(str, Enum):
    VERSION = "cloudfront_version"
    FIELDS = "cloudfront_fields"


HEADER_PREFIXES = {
    MetadataKind.VERSION: "#Version: ",
    MetadataKind.FIELDS: "#Fields: ",
}


@dataclass(frozen=True)
class MetadataLine:
    """A header line carrying one metadata value."""

    kind: MetadataKind
    value: str


@dataclass(frozen=True)
class DataLine:
    """A line destined for the codec."""

    text: str


def classify_line(line: str) -> MetadataLine | DataLine:
    """Tag a line as metadata or data.

    The header prefix must match literally at the start of the line;
    the value is the remainder with surrounding whitespace stripped.
    """
    for kind, prefix in HEADER_PREFIXES.items():
        if line.startswith(prefix):
            return MetadataLine(kind=kind, value=line[len(prefix) :].strip())
    return DataLine(text=line)


@dataclass
class ObjectMetadataState:
    """Metadata in effect for the object currently being streamed.

    One instance per object; discarded when the object's stream ends.
    """

    cloudfront_version: str | None = None
    cloudfront_fields: str | None = None

    def apply(self, line: MetadataLine) -> None:
        """Record a header value, replacing any earlier one of the same kind."""
        if line.kind is MetadataKind.VERSION:
            self.cloudfront_version = line.value
        else:
            self.cloudfront_fields = line.value

    def as_fields(self) -> dict[str, str]:
        """The values that are set, keyed by record field name."""
        fields = {}
        if self.cloudfront_version is not None:
            fields[MetadataKind.VERSION.value] = self.cloudfront_version
        if self.cloudfront_fields is not None:
            fields[MetadataKind.FIELDS.value] = self.cloudfront_fields
        return fields

"""
Record model.

A Record is produced by a codec from one line (or several, for buffering
codecs), enriched by the RecordEmitter, then handed to a sink. ``data``
holds the fields that are shipped downstream; ``metadata`` holds
pipeline-only information such as the ``oss`` provenance namespace.

Example:
    >>> record = Record(message="GET /index.html 200")
    >>> record.set("cloudfront_version", "1.0")
    >>> record.metadata["oss"] = {"key": "logs/access.log"}
    >>> record.to_dict()["cloudfront_version"]
    '1.0'
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

PROVENANCE_NAMESPACE = "oss"


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Record(BaseModel):
    """A decoded, enrichable record."""

    model_config = ConfigDict(extra="forbid")

    message: str | None = Field(default=None, description="Raw line text, if kept")
    data: dict[str, Any] = Field(default_factory=dict, description="Shipped fields")
    metadata: dict[str, Any] = Field(default_factory=dict, description="Pipeline-only fields")
    tags: list[str] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=_utcnow)

    def set(self, name: str, value: Any) -> None:
        """Set a shipped field."""
        self.data[name] = value

    def get(self, name: str, default: Any = None) -> Any:
        """Get a shipped field, falling back to ``message`` for that name."""
        if name == "message" and name not in self.data:
            return self.message
        return self.data.get(name, default)

    @property
    def provenance(self) -> dict[str, Any]:
        """The ``oss`` metadata namespace (created on first access)."""
        return self.metadata.setdefault(PROVENANCE_NAMESPACE, {})

    def add_tag(self, tag: str) -> None:
        if tag not in self.tags:
            self.tags.append(tag)

    def to_dict(self, *, include_metadata: bool = False) -> dict[str, Any]:
        """Serializable view of the record.

        Args:
            include_metadata: Also emit ``@metadata``

        Returns:
            Dict with ``@timestamp``, ``message``, data fields and tags
        """
        result: dict[str, Any] = {"@timestamp": self.timestamp.isoformat()}
        if self.message is not None:
            result["message"] = self.message
        result.update(self.data)
        if self.tags:
            result["tags"] = list(self.tags)
        if include_metadata and self.metadata:
            result["@metadata"] = self.metadata
        return result

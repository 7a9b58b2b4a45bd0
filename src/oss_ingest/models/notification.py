"""
Notification data models.

- NotificationMessage: opaque envelope received from the queue
- ObjectChangeDescriptor: one object mutation decoded from a message body

Both are immutable; they live for a single processing pass and are
never persisted.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class NotificationMessage(BaseModel):
    """A message received from the notification queue.

    Attributes:
        receipt_handle: Handle used to acknowledge (delete) the message
        body: Encoded payload carrying zero or more object descriptors
        message_id: Queue-assigned message identifier
        dequeue_count: How many times the queue has delivered this message
        enqueue_time: When the message was enqueued, if reported
    """

    model_config = ConfigDict(frozen=True)

    receipt_handle: str = Field(..., min_length=1)
    body: str | bytes
    message_id: str | None = None
    dequeue_count: int = Field(default=1, ge=0)
    enqueue_time: datetime | None = None


class ObjectChangeDescriptor(BaseModel):
    """One object mutation reported by a notification.

    Attributes:
        event_name: Event type, e.g. "ObjectCreated:PutObject"
        bucket: Bucket holding the object
        key: Full object key
        size: Object size in bytes
        etag: Content fingerprint
    """

    model_config = ConfigDict(frozen=True)

    event_name: str
    bucket: str
    key: str
    size: int = Field(default=0, ge=0)
    etag: str = ""

    @property
    def is_directory(self) -> bool:
        """True for directory marker keys ending in '/'."""
        return self.key.endswith("/")

"""
Notification queue protocol.

Any queue backend that can hand out one message at a time and delete it
by receipt handle can feed the scheduler.

Example - Implementing a custom queue:
    >>> class MyQueue:
    ...     queue_name = "my-queue"
    ...
    ...     def receive(self, wait_seconds=None):
    ...         raw = self.client.pop(timeout=wait_seconds)
    ...         if raw is None:
    ...             return None
    ...         return NotificationMessage(receipt_handle=raw.id, body=raw.payload)
    ...
    ...     def acknowledge(self, message):
    ...         return self.client.delete(message.receipt_handle)
    ...
    ...     def close(self):
    ...         self.client.disconnect()
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from oss_ingest.models import NotificationMessage


@runtime_checkable
class NotificationQueue(Protocol):
    """Interface for notification queues.

    Implementations:
    - MNSQueue: Aliyun Message Service over its REST API
    - InMemoryQueue: local queue for tests and dry runs
    """

    @property
    def queue_name(self) -> str:
        """Queue identifier used in log events."""
        ...

    def receive(self, wait_seconds: int | None = None) -> "NotificationMessage | None":
        """Receive at most one message.

        Blocks up to ``wait_seconds`` (or the backend default) and returns
        None when no message is available.

        Raises:
            QueueError: On network or backend failure
        """
        ...

    def acknowledge(self, message: "NotificationMessage") -> bool:
        """Delete a message so it is not redelivered.

        Returns:
            True if the backend confirmed the deletion, False otherwise.
            Failures are reported through the return value, not raised.
        """
        ...

    def close(self) -> None:
        """Release client resources. Safe to call more than once."""
        ...

"""
In-memory notification queue.

Mimics queue semantics closely enough for tests and local dry runs:
received messages become invisible until acknowledged, unacknowledged
messages can be made visible again with ``redeliver()`` and every
delivery bumps ``dequeue_count``.

Example:
    >>> queue = InMemoryQueue()
    >>> queue.put(body)
    >>> message = queue.receive()
    >>> queue.acknowledge(message)
    True
"""

from __future__ import annotations

import threading
import uuid
from collections import deque

from oss_ingest.errors import QueueError
from oss_ingest.models import NotificationMessage


class InMemoryQueue:
    """Thread-safe in-memory queue implementing NotificationQueue."""

    def __init__(self, name: str = "memory", *, fail_acknowledge: bool = False):
        """Initialize queue.

        Args:
            name: Queue name used in log events
            fail_acknowledge: Make every acknowledge() report failure
        """
        self.name = name
        self.fail_acknowledge = fail_acknowledge

        self._visible: deque[tuple[str, str | bytes, int]] = deque()
        self._in_flight: dict[str, tuple[str, str | bytes, int]] = {}
        self._ready = threading.Condition()
        self._closed = False

        self.receive_calls = 0
        self.acknowledged: list[str] = []
        self.failures_to_inject: list[Exception] = []

    @property
    def queue_name(self) -> str:
        return self.name

    def put(self, body: str | bytes) -> str:
        """Enqueue a message body; returns its message id."""
        message_id = uuid.uuid4().hex
        with self._ready:
            self._visible.append((message_id, body, 0))
            self._ready.notify()
        return message_id

    def receive(self, wait_seconds: int | None = None) -> NotificationMessage | None:
        with self._ready:
            self.receive_calls += 1
            if self.failures_to_inject:
                raise self.failures_to_inject.pop(0)
            if self._closed:
                raise QueueError(f"queue {self.name} is closed")
            if not self._visible and wait_seconds:
                self._ready.wait(timeout=wait_seconds)
            if not self._visible:
                return None

            message_id, body, count = self._visible.popleft()
            receipt_handle = uuid.uuid4().hex
            self._in_flight[receipt_handle] = (message_id, body, count + 1)

        return NotificationMessage(
            receipt_handle=receipt_handle,
            body=body,
            message_id=message_id,
            dequeue_count=count + 1,
        )

    def acknowledge(self, message: NotificationMessage) -> bool:
        with self._ready:
            if self.fail_acknowledge or message.receipt_handle not in self._in_flight:
                return False
            del self._in_flight[message.receipt_handle]
            self.acknowledged.append(message.receipt_handle)
        return True

    def redeliver(self) -> int:
        """Make all unacknowledged messages visible again (visibility timeout)."""
        with self._ready:
            pending = list(self._in_flight.values())
            self._in_flight.clear()
            self._visible.extend(pending)
            self._ready.notify_all()
        return len(pending)

    @property
    def pending_count(self) -> int:
        """Messages not yet acknowledged, visible or in flight."""
        with self._ready:
            return len(self._visible) + len(self._in_flight)

    def close(self) -> None:
        with self._ready:
            self._closed = True
            self._ready.notify_all()

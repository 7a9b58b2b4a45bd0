"""
Notification queue implementations.

- MNSQueue: Aliyun Message Service (production)
- InMemoryQueue: local queue for tests and dry runs

To implement a custom queue, see ``queue/protocol.py`` for the interface.
"""

from oss_ingest.queue.memory import InMemoryQueue
from oss_ingest.queue.mns import MNSQueue
from oss_ingest.queue.protocol import NotificationQueue

__all__ = [
    "InMemoryQueue",
    "MNSQueue",
    "NotificationQueue",
]

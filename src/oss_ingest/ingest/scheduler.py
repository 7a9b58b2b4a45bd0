"""
Ingestion scheduler.

The control loop tying the pipeline together:

    Idle -> Polling -> Processing -> Idle ...
               \\-> Stopping (on stop(), observed between ticks)

One worker, one message at a time. ``stop()`` may be called from any
thread (or a signal handler); it wakes an idle sleep immediately, is
observed between long-poll slices, and lets an in-progress message finish
its current object. A message interrupted by stop() is left
unacknowledged so the queue redelivers it.
"""

from __future__ import annotations

import threading
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING

import structlog

from ..codecs import get_codec
from ..errors import ConfigurationError, TransientBackendError
from ..models import NotificationMessage, NotificationResult, SchedulerStats
from ..queue.protocol import NotificationQueue
from ..utils.logging import bind_context
from .emitter import RecordEmitter
from .filter import ObjectFilter
from .notifications import NotificationDecoder
from .pipeline import NotificationProcessor
from .postprocess import PostProcessor
from .reader import ObjectLineReader

if TYPE_CHECKING:
    from ..config.settings import Settings
    from ..sinks.protocol import RecordSink
    from ..storage.protocol import ObjectStore

logger = structlog.get_logger(__name__)

# Pause between consecutive ticks when messages keep arriving
TICK_SECONDS = 0.01

DEFAULT_RECEIVE_SLICE_SECONDS = 2


class SchedulerState(str, Enum):
    """Lifecycle of the scheduler loop."""

    IDLE = "idle"
    POLLING = "polling"
    PROCESSING = "processing"
    STOPPING = "stopping"
    STOPPED = "stopped"


class IngestionScheduler:
    """Poll the queue and process notifications until stopped.

    Usage:
        scheduler = build_scheduler(settings, sink)
        thread = threading.Thread(target=scheduler.run)
        thread.start()
        ...
        scheduler.stop()
        thread.join()
    """

    def __init__(
        self,
        queue: NotificationQueue,
        processor: NotificationProcessor,
        *,
        poll_interval_seconds: float = 10,
        wait_seconds: int | None = None,
        receive_slice_seconds: int = DEFAULT_RECEIVE_SLICE_SECONDS,
        failure_policy: str = "acknowledge",
        max_dequeue_count: int = 3,
    ):
        """Initialize scheduler.

        Args:
            queue: Notification queue to poll
            processor: Processes the objects of one message
            poll_interval_seconds: Idle sleep after an empty poll
            wait_seconds: Long-poll wait per receive (None = a single slice)
            receive_slice_seconds: Longest single receive call; bounds how
                long a stop request can go unnoticed during a long poll
            failure_policy: "acknowledge" always deletes processed messages;
                "retry" leaves messages with failed objects for redelivery
            max_dequeue_count: With "retry", acknowledge anyway once a
                message has been delivered this many times
        """
        if receive_slice_seconds < 1:
            raise ValueError("receive_slice_seconds must be at least 1")
        if failure_policy not in ("acknowledge", "retry"):
            raise ValueError(f"unknown failure_policy: {failure_policy!r}")

        self.queue = queue
        self.processor = processor
        self.poll_interval_seconds = poll_interval_seconds
        self.wait_seconds = wait_seconds
        self.receive_slice_seconds = receive_slice_seconds
        self.failure_policy = failure_policy
        self.max_dequeue_count = max_dequeue_count

        self.stats = SchedulerStats()
        self._state = SchedulerState.IDLE
        self._stop_event = threading.Event()

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def stop_requested(self) -> bool:
        return self._stop_event.is_set()

    def stop(self) -> None:
        """Request the loop to exit. Idempotent, callable from any thread."""
        if self._stop_event.is_set():
            return
        logger.info("scheduler_stopping", queue=self.queue.queue_name, state=self._state.value)
        self._stop_event.set()
        if self._state is not SchedulerState.STOPPED:
            self._state = SchedulerState.STOPPING

    def run(self, *, drain: bool = False) -> SchedulerStats:
        """Run the loop until stop() is called.

        Args:
            drain: Also stop after the first poll that returns no message

        Returns:
            Accumulated SchedulerStats
        """
        bind_context(queue=self.queue.queue_name)
        logger.info(
            "scheduler_started",
            poll_interval_seconds=self.poll_interval_seconds,
            wait_seconds=self.wait_seconds,
            drain=drain,
        )

        try:
            while not self._stop_event.is_set():
                result = self.run_once()

                if result is None:
                    if drain:
                        logger.info("queue_drained")
                        break
                    self._stop_event.wait(self.poll_interval_seconds)
                else:
                    self._stop_event.wait(TICK_SECONDS)
        finally:
            self._state = SchedulerState.STOPPED
            self.stats.stopped_at = datetime.now(UTC)
            structlog.contextvars.unbind_contextvars("queue")
            logger.info(
                "scheduler_stopped",
                queue=self.queue.queue_name,
                notifications=self.stats.notifications_received,
                objects_processed=self.stats.objects_processed,
                objects_failed=self.stats.objects_failed,
                records=self.stats.records_emitted,
            )

        return self.stats

    def run_once(self) -> NotificationResult | None:
        """One tick: poll, and if a message arrived, process and settle it.

        Returns:
            The NotificationResult, or None when nothing was received
        """
        if self._stop_event.is_set():
            return None

        self._set_state(SchedulerState.POLLING)
        message = self._receive()
        if message is None:
            self._set_state(SchedulerState.IDLE)
            return None

        self._set_state(SchedulerState.PROCESSING)
        self.stats.notifications_received += 1
        logger.info(
            "notification_received",
            message_id=message.message_id,
            dequeue_count=message.dequeue_count,
        )

        try:
            result = self.processor.process(message, should_stop=self._stop_event.is_set)
        except Exception as e:
            logger.error(
                "notification_processing_failed",
                message_id=message.message_id,
                error=f"{type(e).__name__}: {e}",
                exc_info=True,
            )
            result = NotificationResult(
                receipt_handle=message.receipt_handle,
                message_error=f"{type(e).__name__}: {e}",
            )

        self._settle(message, result)
        self.stats.add(result)
        self._set_state(SchedulerState.IDLE)
        return result

    def _set_state(self, state: SchedulerState) -> None:
        if self._stop_event.is_set():
            self._state = SchedulerState.STOPPING
        else:
            self._state = state

    def _receive(self) -> NotificationMessage | None:
        try:
            # One slice; the queue-level default wait may run to 30 s
            if self.wait_seconds is None:
                return self.queue.receive(wait_seconds=self.receive_slice_seconds)

            remaining = self.wait_seconds
            while True:
                chunk = min(remaining, self.receive_slice_seconds)
                message = self.queue.receive(wait_seconds=chunk)
                remaining -= chunk
                if message is not None or remaining <= 0 or self._stop_event.is_set():
                    return message
        except TransientBackendError as e:
            self.stats.receive_errors += 1
            logger.warning("receive_failed", error=str(e))
        except Exception as e:
            self.stats.receive_errors += 1
            logger.error("receive_failed", error=f"{type(e).__name__}: {e}", exc_info=True)
        return None

    def _settle(self, message: NotificationMessage, result: NotificationResult) -> None:
        """Acknowledge the message, or leave it for redelivery."""
        if result.interrupted:
            self.stats.notifications_left_for_redelivery += 1
            logger.info("notification_left_unacknowledged", message_id=message.message_id, reason="stopped")
            return

        if (
            self.failure_policy == "retry"
            and result.failed_count > 0
            and message.dequeue_count < self.max_dequeue_count
        ):
            self.stats.notifications_left_for_redelivery += 1
            logger.warning(
                "notification_left_for_retry",
                message_id=message.message_id,
                failed_objects=result.failed_count,
                dequeue_count=message.dequeue_count,
            )
            return

        try:
            acknowledged = self.queue.acknowledge(message)
        except TransientBackendError as e:
            logger.error("acknowledge_failed", message_id=message.message_id, error=str(e))
            acknowledged = False

        result.acknowledged = acknowledged
        if acknowledged:
            self.stats.notifications_acknowledged += 1
            logger.info(
                "notification_acknowledged",
                message_id=message.message_id,
                processed=result.processed_count,
                skipped=result.skipped_count,
                failed=result.failed_count,
            )
        else:
            self.stats.acknowledge_failures += 1
            logger.error("acknowledge_failed", message_id=message.message_id)


def build_processor(
    settings: Settings,
    store: ObjectStore,
    sink: RecordSink,
) -> NotificationProcessor:
    """Wire decoder, filter, reader, emitter and post-processor from settings.

    Raises:
        ConfigurationError: If the configured codec is not registered
    """
    try:
        codec = get_codec(settings.codec)
    except KeyError as e:
        raise ConfigurationError(str(e)) from e

    return NotificationProcessor(
        decoder=NotificationDecoder(settings.bucket),
        object_filter=ObjectFilter(settings.prefix, settings.exclude_pattern),
        reader=ObjectLineReader(store),
        emitter=RecordEmitter(
            codec,
            sink,
            include_object_properties=settings.include_object_properties,
        ),
        postprocessor=PostProcessor(
            store,
            settings.bucket,
            backup_to_bucket=settings.backup_to_bucket,
            backup_add_prefix=settings.backup_add_prefix,
            backup_to_dir=settings.backup_to_dir,
            delete=settings.delete,
        ),
    )


def build_scheduler(
    settings: Settings,
    sink: RecordSink,
    *,
    store: ObjectStore | None = None,
    queue: NotificationQueue | None = None,
    receive_slice_seconds: int = DEFAULT_RECEIVE_SLICE_SECONDS,
) -> IngestionScheduler:
    """Create a ready-to-run scheduler.

    Builds the OSS store and MNS queue from settings unless given, and
    prepares the backup bucket and directory.

    Raises:
        ConfigurationError: If settings are inconsistent
        StorageError: If the backup bucket cannot be prepared
    """
    from ..queue.mns import MNSQueue
    from ..storage.oss import OSSObjectStore

    store = store or OSSObjectStore.from_settings(settings)
    mns = settings.mns_settings
    queue = queue or MNSQueue(
        mns.endpoint,
        mns.queue,
        access_key_id=settings.access_key_id,
        access_key_secret=settings.access_key_secret,
    )

    processor = build_processor(settings, store, sink)
    processor.postprocessor.prepare()

    logger.info(
        "scheduler_configured",
        bucket=settings.bucket,
        queue=mns.queue,
        prefix=settings.prefix,
        codec=settings.codec,
    )

    return IngestionScheduler(
        queue,
        processor,
        poll_interval_seconds=mns.poll_interval_seconds,
        wait_seconds=mns.wait_seconds,
        receive_slice_seconds=receive_slice_seconds,
        failure_policy=mns.failure_policy,
        max_dequeue_count=mns.max_dequeue_count,
    )

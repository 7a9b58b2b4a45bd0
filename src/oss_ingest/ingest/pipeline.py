"""
Per-notification processing.

For one message: decode the body, then for each descriptor in order run
filter -> read -> emit -> post-process. Every descriptor yields an
ObjectResult; nothing raised for one object reaches its siblings.
"""

from __future__ import annotations

from collections.abc import Callable

import structlog

from ..errors import DecodeError, LineDecodeError, ObjectReadError
from ..models import (
    NotificationMessage,
    NotificationResult,
    ObjectChangeDescriptor,
    ObjectOutcome,
    ObjectResult,
)
from .emitter import RecordEmitter
from .filter import ObjectFilter
from .notifications import NotificationDecoder
from .postprocess import PostProcessor
from .reader import ObjectLineReader

logger = structlog.get_logger(__name__)


class NotificationProcessor:
    """Process the objects referenced by one notification.

    Usage:
        processor = NotificationProcessor(decoder, object_filter, reader, emitter, postprocessor)
        result = processor.process(message)
        print(f"{result.processed_count} processed, {result.failed_count} failed")
    """

    def __init__(
        self,
        decoder: NotificationDecoder,
        object_filter: ObjectFilter,
        reader: ObjectLineReader,
        emitter: RecordEmitter,
        postprocessor: PostProcessor,
    ):
        self.decoder = decoder
        self.object_filter = object_filter
        self.reader = reader
        self.emitter = emitter
        self.postprocessor = postprocessor

    def process(
        self,
        message: NotificationMessage,
        *,
        should_stop: Callable[[], bool] | None = None,
    ) -> NotificationResult:
        """Process every descriptor of a message.

        Args:
            message: Message received from the queue
            should_stop: Checked between descriptors; when it returns True
                the remaining descriptors are not started

        Returns:
            NotificationResult with one ObjectResult per started descriptor
        """
        result = NotificationResult(receipt_handle=message.receipt_handle)

        try:
            descriptors = self.decoder.decode(message.body)
        except DecodeError as e:
            logger.error(
                "notification_decode_failed",
                message_id=message.message_id,
                error=str(e),
            )
            result.message_error = str(e)
            return result

        for index, descriptor in enumerate(descriptors):
            if index > 0 and should_stop is not None and should_stop():
                logger.info(
                    "notification_interrupted",
                    message_id=message.message_id,
                    remaining=len(descriptors) - index,
                )
                result.interrupted = True
                break
            result.objects.append(self.process_object(descriptor))

        return result

    def process_object(self, descriptor: ObjectChangeDescriptor) -> ObjectResult:
        """Filter, read, emit and post-process one object."""
        key = descriptor.key

        reason = self.object_filter.evaluate(descriptor)
        if reason is not None:
            return ObjectResult(key=key, outcome=ObjectOutcome.SKIPPED, skip_reason=reason)

        logger.info("object_processing", key=key, bucket=descriptor.bucket, size=descriptor.size)

        try:
            with self.reader.open(descriptor.bucket, key) as obj:
                emitted = self.emitter.emit_object(key, obj.lines, obj.properties)
        except (ObjectReadError, LineDecodeError) as e:
            logger.error("object_failed", key=key, error=str(e))
            return ObjectResult(key=key, outcome=ObjectOutcome.FAILED, error=str(e))
        except Exception as e:
            logger.error("object_failed", key=key, error=f"{type(e).__name__}: {e}", exc_info=True)
            return ObjectResult(key=key, outcome=ObjectOutcome.FAILED, error=f"{type(e).__name__}: {e}")

        postprocess_errors = self.postprocessor.process(key)

        logger.info(
            "object_processed",
            key=key,
            records=emitted,
            postprocess_errors=len(postprocess_errors),
        )
        return ObjectResult(
            key=key,
            outcome=ObjectOutcome.PROCESSED,
            records_emitted=emitted,
            postprocess_errors=postprocess_errors,
        )

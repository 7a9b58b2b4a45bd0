"""
Object selection.

Checks run in a fixed order and the first match wins:
1. directory markers (keys ending in "/")
2. literal prefix mismatch
3. exclude pattern match (regular expression search)
"""

from __future__ import annotations

import re

import structlog

from oss_ingest.models import ObjectChangeDescriptor, SkipReason

logger = structlog.get_logger(__name__)


class ObjectFilter:
    """Decide whether a descriptor should be processed.

    Attributes:
        prefix: Literal key prefix; empty or None accepts every key
        exclude_pattern: Compiled regexp of keys to skip; an empty pattern
            matches every key
    """

    def __init__(self, prefix: str | None = None, exclude_pattern: str | None = None):
        self.prefix = prefix or None
        self.exclude_pattern = re.compile(exclude_pattern) if exclude_pattern is not None else None

    def skip_reason(self, descriptor: ObjectChangeDescriptor) -> SkipReason | None:
        """Return why the descriptor is skipped, or None to process it."""
        key = descriptor.key
        if descriptor.is_directory:
            return SkipReason.DIRECTORY
        if self.prefix is not None and not key.startswith(self.prefix):
            return SkipReason.PREFIX_MISMATCH
        if self.exclude_pattern is not None and self.exclude_pattern.search(key):
            return SkipReason.EXCLUDED
        return None

    def should_process(self, descriptor: ObjectChangeDescriptor) -> bool:
        """Filter a descriptor, logging the reason when it is skipped."""
        return self.evaluate(descriptor) is None

    def evaluate(self, descriptor: ObjectChangeDescriptor) -> SkipReason | None:
        """Like skip_reason(), but logs skipped descriptors."""
        reason = self.skip_reason(descriptor)
        if reason is None:
            return None

        if reason is SkipReason.DIRECTORY:
            logger.info("object_skipped", key=descriptor.key, reason=reason.value)
        elif reason is SkipReason.PREFIX_MISMATCH:
            logger.info("object_skipped", key=descriptor.key, reason=reason.value, prefix=self.prefix)
        else:
            logger.info(
                "object_skipped",
                key=descriptor.key,
                reason=reason.value,
                exclude_pattern=self.exclude_pattern.pattern if self.exclude_pattern else None,
            )
        return reason

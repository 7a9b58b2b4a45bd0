"""
Processing result models.

Each object handled by the pipeline produces an ObjectResult instead of
an exception escaping to the caller; a NotificationResult aggregates the
results for one message and SchedulerStats accumulates across a run.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum


class ObjectOutcome(str, Enum):
    """What happened to one object descriptor."""

    PROCESSED = "processed"
    SKIPPED = "skipped"
    FAILED = "failed"


class SkipReason(str, Enum):
    """Why the filter rejected a descriptor."""

    DIRECTORY = "directory"
    PREFIX_MISMATCH = "prefix_mismatch"
    EXCLUDED = "excluded"


@dataclass
class ObjectResult:
    """Result of processing one object descriptor."""

    key: str
    outcome: ObjectOutcome
    records_emitted: int = 0
    skip_reason: SkipReason | None = None
    error: str | None = None
    postprocess_errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        """True unless reading or decoding the object failed."""
        return self.outcome is not ObjectOutcome.FAILED


@dataclass
class NotificationResult:
    """Aggregated results for one notification message."""

    receipt_handle: str
    objects: list[ObjectResult] = field(default_factory=list)
    message_error: str | None = None
    interrupted: bool = False
    acknowledged: bool = False

    @property
    def descriptor_count(self) -> int:
        return len(self.objects)

    @property
    def processed_count(self) -> int:
        return sum(1 for r in self.objects if r.outcome is ObjectOutcome.PROCESSED)

    @property
    def failed_count(self) -> int:
        return sum(1 for r in self.objects if r.outcome is ObjectOutcome.FAILED)

    @property
    def skipped_count(self) -> int:
        return sum(1 for r in self.objects if r.outcome is ObjectOutcome.SKIPPED)

    @property
    def records_emitted(self) -> int:
        return sum(r.records_emitted for r in self.objects)

    @property
    def has_failures(self) -> bool:
        """True if the body was undecodable or any object failed."""
        return self.message_error is not None or self.failed_count > 0

    def skipped_by_reason(self) -> Counter[SkipReason]:
        return Counter(r.skip_reason for r in self.objects if r.skip_reason is not None)


@dataclass
class SchedulerStats:
    """Counters accumulated over a scheduler run."""

    notifications_received: int = 0
    notifications_acknowledged: int = 0
    acknowledge_failures: int = 0
    notifications_left_for_redelivery: int = 0
    message_errors: int = 0
    receive_errors: int = 0
    descriptors_seen: int = 0
    objects_processed: int = 0
    objects_failed: int = 0
    objects_skipped: Counter[SkipReason] = field(default_factory=Counter)
    records_emitted: int = 0
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    stopped_at: datetime | None = None

    @property
    def total_skipped(self) -> int:
        return sum(self.objects_skipped.values())

    @property
    def elapsed_seconds(self) -> float:
        end = self.stopped_at or datetime.now(UTC)
        return (end - self.started_at).total_seconds()

    def add(self, result: NotificationResult) -> None:
        """Fold one notification's result into the totals."""
        if result.message_error is not None:
            self.message_errors += 1
        self.descriptors_seen += result.descriptor_count
        self.objects_processed += result.processed_count
        self.objects_failed += result.failed_count
        self.objects_skipped.update(result.skipped_by_reason())
        self.records_emitted += result.records_emitted

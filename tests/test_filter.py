"""
Tests for object selection.
"""

from __future__ import annotations

import pytest
from structlog.testing import capture_logs

from oss_ingest.ingest.filter import ObjectFilter
from oss_ingest.models import ObjectChangeDescriptor, SkipReason
from tests.fixtures.factories import BUCKET


def descriptor(key: str) -> ObjectChangeDescriptor:
    return ObjectChangeDescriptor(event_name="ObjectCreated:PutObject", bucket=BUCKET, key=key)


class TestObjectFilter:
    """Tests for ObjectFilter."""

    def test_no_rules_accepts_files(self):
        """Test an unconfigured filter accepts every non-directory key."""
        object_filter = ObjectFilter()

        assert object_filter.should_process(descriptor("anything.log"))
        assert object_filter.should_process(descriptor("deep/path/file.gz"))

    def test_directory_rejected(self):
        """Test keys ending in '/' are always skipped."""
        object_filter = ObjectFilter()
        assert object_filter.skip_reason(descriptor("logs/")) is SkipReason.DIRECTORY

    def test_prefix_is_literal(self):
        """Test prefix matching is a literal startswith."""
        object_filter = ObjectFilter(prefix="logs.")

        assert object_filter.should_process(descriptor("logs.2024/app.log"))
        assert not object_filter.should_process(descriptor("logsX2024/app.log"))

    def test_empty_prefix_accepts(self):
        """Test an empty prefix accepts every key."""
        assert ObjectFilter(prefix="").should_process(descriptor("app.log"))

    def test_empty_exclude_pattern_matches_everything(self):
        """Test an empty exclude_pattern is set and skips every file."""
        object_filter = ObjectFilter(exclude_pattern="")

        assert object_filter.skip_reason(descriptor("logs/app.log")) is SkipReason.EXCLUDED

    def test_exclude_is_search(self):
        """Test exclude_pattern matches anywhere in the key."""
        object_filter = ObjectFilter(exclude_pattern=r"\.tmp$")

        assert object_filter.skip_reason(descriptor("logs/app.log.tmp")) is SkipReason.EXCLUDED
        assert object_filter.should_process(descriptor("logs/app.log"))

    @pytest.mark.parametrize(
        ("key", "expected"),
        [
            ("logs/", SkipReason.DIRECTORY),
            ("other/", SkipReason.DIRECTORY),
            ("other/app.log", SkipReason.PREFIX_MISMATCH),
            ("logs/tmp/app.log", SkipReason.EXCLUDED),
            ("logs/app.log", None),
        ],
    )
    def test_check_order(self, key, expected):
        """Test directory, then prefix, then exclude pattern."""
        object_filter = ObjectFilter(prefix="logs/", exclude_pattern="tmp")
        assert object_filter.skip_reason(descriptor(key)) is expected

    def test_evaluate_logs_reason(self):
        """Test evaluate() logs a skipped descriptor with its reason."""
        object_filter = ObjectFilter(prefix="logs/")

        with capture_logs() as logs:
            reason = object_filter.evaluate(descriptor("other/app.log"))

        assert reason is SkipReason.PREFIX_MISMATCH
        assert logs == [
            {
                "event": "object_skipped",
                "log_level": "info",
                "key": "other/app.log",
                "reason": "prefix_mismatch",
                "prefix": "logs/",
            }
        ]

    def test_evaluate_silent_when_accepted(self):
        """Test evaluate() logs nothing for accepted descriptors."""
        with capture_logs() as logs:
            assert ObjectFilter().evaluate(descriptor("app.log")) is None
        assert logs == []

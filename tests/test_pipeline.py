"""
Tests for per-notification processing.
"""

from __future__ import annotations

from oss_ingest.models import NotificationMessage, ObjectOutcome, SkipReason
from tests.fixtures.factories import (
    BACKUP_BUCKET,
    BUCKET,
    NotificationFactory,
    gzip_bytes,
    numbered_lines,
)


def message(body: str | bytes, receipt_handle: str = "rh-1") -> NotificationMessage:
    return NotificationMessage(receipt_handle=receipt_handle, body=body, message_id="m-1")


class TestNotificationProcessor:
    """Tests for NotificationProcessor."""

    def test_plain_and_gzip_objects(self, store, sink, make_processor):
        """Test every line of plain and gzip objects becomes a record."""
        text = numbered_lines(37)
        store.put_object(BUCKET, "logs/a.log", text)
        store.put_object(BUCKET, "logs/b.log.gz", gzip_bytes(text))

        result = make_processor().process(
            message(NotificationFactory.body("logs/a.log", "logs/b.log.gz"))
        )

        assert result.processed_count == 2
        assert result.records_emitted == 74
        assert len(sink) == 74
        assert sink.records[0].provenance["key"] == "logs/a.log"
        assert sink.records[-1].provenance["key"] == "logs/b.log.gz"

    def test_prefix_scenario(self, store, sink, make_processor):
        """Test only keys under the prefix are read, backed up and deleted."""
        text = numbered_lines(37)
        for key in ("logs/a.log", "logs/b.log.gz", "other/c.log"):
            content = gzip_bytes(text) if key.endswith(".gz") else text
            store.put_object(BUCKET, key, content)
        processor = make_processor(
            prefix="logs/",
            backup_to_bucket=BACKUP_BUCKET,
            backup_add_prefix="processed/",
            delete=True,
        )

        result = processor.process(
            message(NotificationFactory.body("logs/", "logs/a.log", "logs/b.log.gz", "other/c.log"))
        )

        assert len(sink) == 74
        assert result.processed_count == 2
        assert result.skipped_by_reason() == {
            SkipReason.DIRECTORY: 1,
            SkipReason.PREFIX_MISMATCH: 1,
        }
        assert store.list_keys(BACKUP_BUCKET) == ["processed/logs/a.log", "processed/logs/b.log.gz"]
        assert store.list_keys(BUCKET) == ["other/c.log"]

    def test_exclude_pattern(self, store, sink, make_processor):
        """Test excluded keys are skipped."""
        store.put_object(BUCKET, "logs/a.log", "a\n")
        store.put_object(BUCKET, "logs/a.log.tmp", "tmp\n")

        result = make_processor(exclude_pattern=r"\.tmp$").process(
            message(NotificationFactory.body("logs/a.log", "logs/a.log.tmp"))
        )

        assert sink.messages() == ["a"]
        assert result.objects[1].skip_reason is SkipReason.EXCLUDED

    def test_undecodable_body(self, sink, make_processor):
        """Test a malformed body is reported on the result, not raised."""
        result = make_processor().process(message("not a notification"))

        assert result.message_error is not None
        assert result.objects == []
        assert result.has_failures
        assert len(sink) == 0

    def test_failed_object_isolated(self, store, sink, make_processor):
        """Test one unreadable object does not stop its siblings."""
        store.put_object(BUCKET, "logs/a.log", "a\n")
        broken = gzip_bytes(numbered_lines(500))
        store.put_object(BUCKET, "logs/broken.log.gz", broken[: len(broken) // 2])
        store.put_object(BUCKET, "logs/c.log", "c\n")

        result = make_processor().process(
            message(NotificationFactory.body("logs/a.log", "logs/broken.log.gz", "logs/c.log"))
        )

        outcomes = [r.outcome for r in result.objects]
        assert outcomes == [ObjectOutcome.PROCESSED, ObjectOutcome.FAILED, ObjectOutcome.PROCESSED]
        assert "broken.log.gz" in result.objects[1].error
        assert sink.messages()[0] == "a"
        assert sink.messages()[-1] == "c"
        assert all(stream.was_closed for stream in store.opened_streams)

    def test_failed_object_not_postprocessed(self, store, make_processor):
        """Test an object that failed to read is neither backed up nor deleted."""
        store.put_object(BUCKET, "logs/bad.log.gz", b"not gzip")

        result = make_processor(backup_to_bucket=BACKUP_BUCKET, delete=True).process(
            message(NotificationFactory.body("logs/bad.log.gz"))
        )

        assert result.failed_count == 1
        assert store.has_object(BUCKET, "logs/bad.log.gz")
        assert store.list_keys(BACKUP_BUCKET) == []

    def test_missing_object(self, store, make_processor):
        """Test a notification for an object that no longer exists fails that object."""
        result = make_processor().process(message(NotificationFactory.body("logs/gone.log")))

        assert result.objects[0].outcome is ObjectOutcome.FAILED

    def test_postprocess_error_keeps_processed(self, store, sink, make_processor):
        """Test a failed delete is reported but the object still counts as processed."""
        store.put_object(BUCKET, "logs/a.log", "a\n")
        processor = make_processor(delete=True)
        store.failing_operations.add("delete_object")

        result = processor.process(message(NotificationFactory.body("logs/a.log")))

        obj = result.objects[0]
        assert obj.outcome is ObjectOutcome.PROCESSED
        assert obj.ok
        assert obj.postprocess_errors == ["delete: injected failure in delete_object"]
        assert not result.has_failures

    def test_should_stop_between_objects(self, store, sink, make_processor):
        """Test a stop request finishes the current object and skips the rest."""
        store.put_object(BUCKET, "logs/a.log", "a\n")
        store.put_object(BUCKET, "logs/b.log", "b\n")
        calls = []

        def should_stop():
            calls.append(True)
            return True

        result = make_processor().process(
            message(NotificationFactory.body("logs/a.log", "logs/b.log")),
            should_stop=should_stop,
        )

        assert result.interrupted
        assert [r.key for r in result.objects] == ["logs/a.log"]
        assert sink.messages() == ["a"]
        assert len(calls) == 1

    def test_unexpected_error_contained(self, store, make_processor):
        """Test an unexpected exception from the sink fails only that object."""
        store.put_object(BUCKET, "logs/a.log", "a\n")
        processor = make_processor()

        class BrokenSink:
            def push(self, record):
                raise RuntimeError("sink down")

            def close(self):
                pass

        processor.emitter.sink = BrokenSink()

        result = processor.process(message(NotificationFactory.body("logs/a.log")))

        assert result.objects[0].outcome is ObjectOutcome.FAILED
        assert "RuntimeError" in result.objects[0].error

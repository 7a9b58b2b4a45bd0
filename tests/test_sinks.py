"""
Tests for record sinks.
"""

from __future__ import annotations

import io
import json
import threading

from oss_ingest.models import Record
from oss_ingest.sinks import JSONLinesSink, MemorySink, RecordSink


class TestMemorySink:
    """Tests for MemorySink."""

    def test_protocol(self):
        """Test MemorySink satisfies RecordSink."""
        assert isinstance(MemorySink(), RecordSink)

    def test_order_preserved(self):
        """Test records are kept in push order."""
        sink = MemorySink()
        for text in ("a", "b", "c"):
            sink.push(Record(message=text))

        assert sink.messages() == ["a", "b", "c"]
        assert len(sink) == 3
        assert [r.message for r in sink] == ["a", "b", "c"]

    def test_concurrent_push(self):
        """Test pushes from several threads are all kept."""
        sink = MemorySink()

        def push_many():
            for i in range(200):
                sink.push(Record(message=str(i)))

        threads = [threading.Thread(target=push_many) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(sink) == 800


class TestJSONLinesSink:
    """Tests for JSONLinesSink."""

    def test_stream(self):
        """Test one JSON document per line on a stream."""
        stream = io.StringIO()
        sink = JSONLinesSink(stream)

        record = Record(message="hello", tags=["t"])
        record.set("cloudfront_version", "1.0")
        record.metadata["oss"] = {"key": "a.log"}
        sink.push(record)
        sink.close()

        lines = stream.getvalue().splitlines()
        assert len(lines) == 1
        document = json.loads(lines[0])
        assert document["message"] == "hello"
        assert document["cloudfront_version"] == "1.0"
        assert document["tags"] == ["t"]
        assert "@timestamp" in document
        assert "@metadata" not in document
        assert not stream.closed

    def test_include_metadata(self):
        """Test the metadata namespace can be written."""
        stream = io.StringIO()
        sink = JSONLinesSink(stream, include_metadata=True)

        record = Record(message="x")
        record.metadata["oss"] = {"key": "a.log"}
        sink.push(record)

        assert json.loads(stream.getvalue())["@metadata"] == {"oss": {"key": "a.log"}}

    def test_file_append(self, tmp_path):
        """Test a path target is appended to and closed."""
        path = tmp_path / "out.jsonl"
        path.write_text('{"existing": true}\n')

        with JSONLinesSink(path) as sink:
            sink.push(Record(message="a"))
            sink.push(Record(message="b"))

        lines = path.read_text().splitlines()
        assert len(lines) == 3
        assert sink.count == 2
        assert json.loads(lines[-1])["message"] == "b"

"""
Tests for the command-line interface.
"""

from __future__ import annotations

import json
import logging

import pytest
import structlog
from click.testing import CliRunner

import oss_ingest.ingest
from oss_ingest import __version__
from oss_ingest.cli import main
from oss_ingest.queue import InMemoryQueue
from oss_ingest.storage import InMemoryObjectStore
from tests.fixtures.factories import BUCKET, NotificationFactory

CONFIG = """
bucket = "my-log-bucket"
endpoint = "oss-cn-hangzhou.aliyuncs.com"
access_key_id = "LTAI4FakeKeyId"
access_key_secret = "fake-secret"
prefix = "logs/"

[mns_settings]
endpoint = "http://1234567890.mns.cn-hangzhou.aliyuncs.com"
queue = "oss-events"
wait_seconds = 0
"""


@pytest.fixture(autouse=True)
def reset_logging():
    """Undo the logging configuration commands install."""
    yield
    structlog.reset_defaults()
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text(CONFIG)
    return path


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


class TestMain:
    """Tests for the command group."""

    def test_version(self, runner):
        """Test --version prints the package version."""
        result = runner.invoke(main, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help(self, runner):
        """Test --help lists the commands."""
        result = runner.invoke(main, ["--help"])

        assert result.exit_code == 0
        for command in ("run", "check-config", "decode"):
            assert command in result.output


class TestCheckConfig:
    """Tests for check-config."""

    def test_valid(self, runner, config_file):
        """Test a valid config is displayed with secrets masked."""
        result = runner.invoke(main, ["--config", str(config_file), "check-config"])

        assert result.exit_code == 0, result.output
        assert "Configuration is valid" in result.output
        assert "oss-events" in result.output
        assert "fake-secret" not in result.output

    def test_invalid(self, runner, tmp_path):
        """Test an invalid config exits non-zero with the problem."""
        path = tmp_path / "bad.toml"
        path.write_text('bucket = "b"\n')

        result = runner.invoke(main, ["--config", str(path), "check-config"])

        assert result.exit_code == 2
        assert "Configuration error" in result.output


class TestDecode:
    """Tests for decode."""

    def test_with_bucket(self, runner, tmp_path):
        """Test a body is decoded without any configuration."""
        body = tmp_path / "body.txt"
        body.write_text(NotificationFactory.body("logs/a.log", "logs/"))

        result = runner.invoke(main, ["decode", str(body), "--bucket", BUCKET])

        assert result.exit_code == 0, result.output
        assert "logs/a.log" in result.output
        assert "2 objects" in result.output

    def test_applies_configured_filter(self, runner, config_file, tmp_path):
        """Test configured prefix decides the shown action."""
        body = tmp_path / "body.txt"
        body.write_text(NotificationFactory.body("other/c.log"))

        result = runner.invoke(main, ["--config", str(config_file), "decode", str(body)])

        assert result.exit_code == 0, result.output
        assert "prefix_mismatch" in result.output

    def test_malformed(self, runner, tmp_path):
        """Test a malformed body exits non-zero."""
        body = tmp_path / "body.txt"
        body.write_text("garbage that is not a notification")

        result = runner.invoke(main, ["decode", str(body), "--bucket", BUCKET])

        assert result.exit_code == 1
        assert "Decode error" in result.output


class TestRun:
    """Tests for run."""

    @pytest.fixture
    def backends(self, monkeypatch):
        """Route build_scheduler to in-memory backends."""
        store = InMemoryObjectStore([BUCKET])
        queue = InMemoryQueue("oss-events")
        real_build = oss_ingest.ingest.build_scheduler

        def build(settings, sink):
            return real_build(settings, sink, store=store, queue=queue)

        monkeypatch.setattr(oss_ingest.ingest, "build_scheduler", build)
        return store, queue

    def test_drain_to_file(self, runner, config_file, tmp_path, backends):
        """Test records are written as JSON lines and a summary is shown."""
        store, queue = backends
        store.put_object(BUCKET, "logs/a.log", "first\nsecond\n")
        queue.put(NotificationFactory.body("logs/a.log", "other/skip.log"))
        output = tmp_path / "records.jsonl"

        result = runner.invoke(
            main,
            ["--config", str(config_file), "run", "--drain", "--output", str(output)],
        )

        assert result.exit_code == 0, result.output
        records = [json.loads(line) for line in output.read_text().splitlines()]
        assert [r["message"] for r in records] == ["first", "second"]
        assert "Ingestion Summary" in result.output
        assert queue.pending_count == 0

    def test_include_metadata(self, runner, config_file, tmp_path, backends):
        """Test --include-metadata writes provenance."""
        store, queue = backends
        store.put_object(BUCKET, "logs/a.log", "first\n")
        queue.put(NotificationFactory.body("logs/a.log"))
        output = tmp_path / "records.jsonl"

        runner.invoke(
            main,
            [
                "--config",
                str(config_file),
                "run",
                "--drain",
                "--include-metadata",
                "--output",
                str(output),
            ],
        )

        record = json.loads(output.read_text())
        assert record["@metadata"]["oss"]["key"] == "logs/a.log"

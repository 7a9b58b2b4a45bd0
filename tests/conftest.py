"""
Pytest configuration and shared fixtures for the OSS ingestion pipeline.

This module provides:
- In-memory object store, queue and sink
- Settings built from factories
- Factories for processors and schedulers wired to the in-memory backends

Example usage in tests:
    def test_something(store, queue, sink, make_scheduler):
        store.put_object(BUCKET, "logs/a.log", "hello\\n")
        queue.put(NotificationFactory.body("logs/a.log"))
        make_scheduler().run(drain=True)
        assert sink.messages() == ["hello"]
"""

from __future__ import annotations

import os
from collections.abc import Callable, Iterator
from typing import Any

import pytest
import structlog

from oss_ingest.config import Settings, get_settings
from oss_ingest.ingest import IngestionScheduler, NotificationProcessor, build_processor
from oss_ingest.queue import InMemoryQueue
from oss_ingest.sinks import MemorySink
from oss_ingest.storage import InMemoryObjectStore
from tests.fixtures.factories import BUCKET, make_settings


# ============================================================================
# ENVIRONMENT ISOLATION
# ============================================================================


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Drop OSS_INGEST_* variables and cached settings between tests."""
    for name in list(os.environ):
        if name.startswith("OSS_INGEST_"):
            monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    structlog.contextvars.clear_contextvars()
    yield
    get_settings.cache_clear()
    structlog.contextvars.clear_contextvars()


# ============================================================================
# BACKEND FIXTURES
# ============================================================================


@pytest.fixture
def store() -> InMemoryObjectStore:
    """Provide an object store holding the empty source bucket."""
    return InMemoryObjectStore([BUCKET])


@pytest.fixture
def queue() -> Iterator[InMemoryQueue]:
    """Provide an empty in-memory notification queue."""
    q = InMemoryQueue("oss-events")
    yield q
    q.close()


@pytest.fixture
def sink() -> MemorySink:
    """Provide a sink collecting records in memory."""
    return MemorySink()


# ============================================================================
# SETTINGS AND PIPELINE FIXTURES
# ============================================================================


@pytest.fixture
def settings() -> Settings:
    """Provide minimal valid settings."""
    return make_settings()


@pytest.fixture
def make_processor(
    store: InMemoryObjectStore, sink: MemorySink
) -> Callable[..., NotificationProcessor]:
    """Factory building a processor over the in-memory store and sink.

    Keyword arguments are settings overrides.
    """

    def _make(**overrides: Any) -> NotificationProcessor:
        processor = build_processor(make_settings(**overrides), store, sink)
        processor.postprocessor.prepare()
        return processor

    return _make


@pytest.fixture
def make_scheduler(
    queue: InMemoryQueue, make_processor: Callable[..., NotificationProcessor]
) -> Callable[..., IngestionScheduler]:
    """Factory building a fast-ticking scheduler over the in-memory queue.

    Keyword arguments are passed to IngestionScheduler, except
    ``settings``, a dict of settings overrides for the processor.
    """

    def _make(settings: dict[str, Any] | None = None, **kwargs: Any) -> IngestionScheduler:
        kwargs.setdefault("poll_interval_seconds", 0.01)
        kwargs.setdefault("wait_seconds", 0)
        return IngestionScheduler(queue, make_processor(**(settings or {})), **kwargs)

    return _make

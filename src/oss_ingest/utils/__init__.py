"""
Utility functions for the OSS ingestion pipeline.

Logging:
- setup_logging(): Configure structured logging with structlog
- get_logger(name): Get a logger instance
- bind_context() / clear_context(): Context variables for log events
"""

from oss_ingest.utils.logging import (
    bind_context,
    clear_context,
    get_logger,
    redact_secrets,
    setup_logging,
)

__all__ = [
    "bind_context",
    "clear_context",
    "get_logger",
    "redact_secrets",
    "setup_logging",
]

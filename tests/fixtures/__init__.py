"""Test fixtures and factories."""

from tests.fixtures.factories import (
    BACKUP_BUCKET,
    BUCKET,
    CLOUDFRONT_LOG,
    NotificationFactory,
    gzip_bytes,
    make_settings,
    numbered_lines,
    settings_dict,
)

__all__ = [
    "BACKUP_BUCKET",
    "BUCKET",
    "CLOUDFRONT_LOG",
    "NotificationFactory",
    "gzip_bytes",
    "make_settings",
    "numbered_lines",
    "settings_dict",
]

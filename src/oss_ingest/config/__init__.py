"""
Configuration management for the OSS ingestion pipeline.

Settings are loaded from TOML files and OSS_INGEST_* environment variables,
validated with pydantic and frozen afterwards.

Example:
    >>> from oss_ingest.config import load_settings
    >>>
    >>> settings = load_settings("config/local.toml")
    >>> print(settings.mns_settings.queue)

See config/example.toml for all options.
"""

from oss_ingest.config.settings import (
    LoggingSettings,
    MNSSettings,
    OSSClientSettings,
    Settings,
    get_settings,
    load_settings,
    reload_settings,
)

__all__ = [
    "LoggingSettings",
    "MNSSettings",
    "OSSClientSettings",
    "Settings",
    "get_settings",
    "load_settings",
    "reload_settings",
]

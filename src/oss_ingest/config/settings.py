"""
Configuration settings for the OSS ingestion pipeline.

This module handles loading and validating configuration from TOML files
and environment variables.

Configuration hierarchy (later overrides earlier):
1. Default values (built-in)
2. config/default.toml
3. config/local.toml (gitignored)
4. File named by OSS_INGEST_CONFIG_PATH
5. Environment variables (OSS_INGEST_* prefix)

Example:
    >>> from oss_ingest.config import get_settings
    >>>
    >>> settings = get_settings()
    >>> print(f"Bucket: {settings.bucket}")
    >>> print(f"MNS queue: {settings.mns_settings.queue}")
"""

from __future__ import annotations

import os
import re
import tomllib
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from oss_ingest.errors import ConfigurationError

ENV_PREFIX = "OSS_INGEST_"
CONFIG_PATH_ENV = "OSS_INGEST_CONFIG_PATH"


class MNSSettings(BaseModel):
    """MNS queue settings."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    endpoint: str = Field(..., description="MNS endpoint to connect to")
    queue: str = Field(..., description="MNS queue to poll messages from")
    wait_seconds: int | None = Field(
        default=None,
        ge=0,
        le=30,
        description="Max long-poll wait per receive (None = one receive slice)",
    )
    poll_interval_seconds: float = Field(
        default=10,
        ge=0,
        description="Sleep between polls when no message was received",
    )
    failure_policy: Literal["acknowledge", "retry"] = Field(
        default="acknowledge",
        description="What to do with a message whose objects failed",
    )
    max_dequeue_count: int = Field(
        default=3,
        gt=0,
        description="With failure_policy=retry, acknowledge after this many deliveries",
    )


class OSSClientSettings(BaseModel):
    """Additional OSS client settings."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    secure_connection_enabled: bool | None = Field(
        default=None,
        description="Force https (True) or http (False); None keeps the endpoint scheme",
    )
    max_connections_to_oss: int = Field(
        default=1024,
        description="Connection pool size",
    )

    @field_validator("max_connections_to_oss")
    @classmethod
    def _positive_connections(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("max_connections_to_oss must be positive")
        return value


class LoggingSettings(BaseModel):
    """Logging settings."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    level: str = Field(default="INFO", description="Log level")
    format: Literal["console", "json"] = Field(default="console", description="Output format")
    include_timestamp: bool = Field(default=True)
    include_location: bool = Field(default=False)


class Settings(BaseModel):
    """Main settings container for one bucket/queue pair."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    # Source bucket and credentials
    bucket: str = Field(..., min_length=1, description="OSS bucket to read objects from")
    endpoint: str = Field(..., min_length=1, description="OSS endpoint")
    access_key_id: str = Field(..., min_length=1)
    access_key_secret: str = Field(..., min_length=1, repr=False)

    # Object selection
    prefix: str | None = Field(default=None, description="Literal key prefix to accept")
    exclude_pattern: str | None = Field(default=None, description="Regexp of keys to skip")

    # Post-processing
    backup_to_bucket: str | None = Field(default=None)
    backup_add_prefix: str | None = Field(default=None)
    backup_to_dir: Path | None = Field(default=None)
    delete: bool = Field(default=False, description="Delete source objects after processing")

    # Record enrichment
    include_object_properties: bool = Field(default=False)
    codec: str = Field(default="plain", description="Codec used to turn lines into records")

    # Subsystems
    mns_settings: MNSSettings
    additional_oss_settings: OSSClientSettings = Field(default_factory=OSSClientSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @field_validator("exclude_pattern")
    @classmethod
    def _compilable_pattern(cls, value: str | None) -> str | None:
        if value is not None:
            try:
                re.compile(value)
            except re.error as e:
                raise ValueError(f"invalid exclude_pattern: {e}") from e
        return value

    @model_validator(mode="after")
    def _distinct_backup_bucket(self) -> Settings:
        if self.backup_to_bucket is not None and self.backup_to_bucket == self.bucket:
            raise ValueError("backup bucket and source bucket should be different")
        return self

    def masked(self) -> dict[str, Any]:
        """Settings as a flat-ish dict with credentials masked, for display."""
        data = self.model_dump(mode="json")
        data["access_key_id"] = _mask(self.access_key_id)
        data["access_key_secret"] = "***"
        return data


def _mask(value: str) -> str:
    if len(value) <= 4:
        return "***"
    return value[:4] + "***"


# Nested sections that may be addressed from the environment
_ENV_SECTIONS = ("mns_settings", "additional_oss_settings", "logging")


def _find_config_files() -> list[Path]:
    """Find configuration files in standard locations.

    Returns:
        List of config file paths (in order of priority)
    """
    files = []

    cwd = Path.cwd()
    for name in ["config/default.toml", "config/local.toml"]:
        path = cwd / name
        if path.exists():
            files.append(path)

    env_config = os.environ.get(CONFIG_PATH_ENV)
    if env_config:
        path = Path(env_config)
        if path.exists():
            files.append(path)

    return files


def _load_toml(path: Path) -> dict[str, Any]:
    """Load a TOML file.

    Raises:
        ConfigurationError: If the file is not valid TOML
    """
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(f"invalid TOML in {path}: {e}") from e


def _merge_dicts(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge dictionaries, override wins."""
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _merge_dicts(result[key], value)
        else:
            result[key] = value

    return result


def _apply_env_overrides(
    config: dict[str, Any], environ: dict[str, str] | None = None
) -> dict[str, Any]:
    """Apply OSS_INGEST_* environment variable overrides.

    OSS_INGEST_BUCKET -> bucket,
    OSS_INGEST_MNS_SETTINGS_QUEUE -> mns_settings.queue.
    Values stay strings; pydantic coerces them on validation.
    """
    environ = os.environ if environ is None else environ
    result = config.copy()

    for name, value in environ.items():
        if not name.startswith(ENV_PREFIX) or name == CONFIG_PATH_ENV:
            continue

        key = name[len(ENV_PREFIX) :].lower()

        for section in _ENV_SECTIONS:
            if key.startswith(section + "_"):
                nested = dict(result.get(section) or {})
                nested[key[len(section) + 1 :]] = value
                result[section] = nested
                break
        else:
            if key in Settings.model_fields:
                result[key] = value

    return result


def load_settings(
    config_path: str | Path | None = None,
    *,
    overrides: dict[str, Any] | None = None,
) -> Settings:
    """Load and validate settings.

    Args:
        config_path: Optional explicit config file path
        overrides: Values applied last (used by the CLI and tests)

    Returns:
        Settings instance

    Raises:
        ConfigurationError: If a file is unreadable or validation fails
    """
    config: dict[str, Any] = {}

    if config_path:
        path = Path(config_path)
        if not path.exists():
            raise ConfigurationError(f"config file not found: {path}")
        files = [path]
    else:
        files = _find_config_files()

    for path in files:
        config = _merge_dicts(config, _load_toml(path))

    config = _apply_env_overrides(config)

    if overrides:
        config = _merge_dicts(config, overrides)

    try:
        return Settings(**config)
    except ValidationError as e:
        raise ConfigurationError(_describe_validation_error(e)) from e


def _describe_validation_error(error: ValidationError) -> str:
    problems = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"]) or "settings"
        problems.append(f"{location}: {item['msg']}")
    return "invalid configuration: " + "; ".join(problems)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance.

    Example:
        >>> settings = get_settings()
        >>> print(settings.mns_settings.endpoint)
    """
    return load_settings()


def reload_settings() -> Settings:
    """Reload settings (clears cache)."""
    get_settings.cache_clear()
    return get_settings()

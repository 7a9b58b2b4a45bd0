"""
Post-processing of ingested objects.

Steps run in a fixed order, each best-effort and independent:
1. copy to the backup bucket under ``backup_add_prefix + key``
2. download to ``backup_to_dir/key``
3. delete the source object

A failing step is logged and reported; the remaining steps still run.
"""

from __future__ import annotations

from collections.abc import Callable
from functools import partial
from pathlib import Path

import structlog

from oss_ingest.errors import ConfigurationError, StorageError
from oss_ingest.storage.protocol import ObjectStore

logger = structlog.get_logger(__name__)


class PostProcessor:
    """Backup and cleanup of processed objects.

    Attributes:
        bucket: Source bucket
        backup_to_bucket: Bucket receiving server-side copies
        backup_add_prefix: Prefix prepended to backup keys
        backup_to_dir: Local directory mirroring object keys
        delete: Delete the source object after the backups
    """

    def __init__(
        self,
        store: ObjectStore,
        bucket: str,
        *,
        backup_to_bucket: str | None = None,
        backup_add_prefix: str | None = None,
        backup_to_dir: str | Path | None = None,
        delete: bool = False,
    ):
        self.store = store
        self.bucket = bucket
        self.backup_to_bucket = backup_to_bucket
        self.backup_add_prefix = backup_add_prefix or ""
        self.backup_to_dir = Path(backup_to_dir) if backup_to_dir is not None else None
        self.delete = delete

    def prepare(self) -> None:
        """Create the backup bucket and backup directory if missing.

        Raises:
            ConfigurationError: If backup and source bucket are the same
            StorageError: If the backup bucket cannot be checked or created
        """
        if self.backup_to_bucket is not None:
            if self.backup_to_bucket == self.bucket:
                raise ConfigurationError("backup bucket and source bucket should be different")
            if not self.store.bucket_exists(self.backup_to_bucket):
                logger.info("backup_bucket_created", bucket=self.backup_to_bucket)
                self.store.create_bucket(self.backup_to_bucket)

        if self.backup_to_dir is not None and not self.backup_to_dir.exists():
            self.backup_to_dir.mkdir(mode=0o700, parents=True)

    def backup_key(self, key: str) -> str:
        return f"{self.backup_add_prefix}{key}"

    def process(self, key: str) -> list[str]:
        """Run all configured steps for one object.

        Returns:
            Error descriptions of failed steps (empty if all succeeded)
        """
        steps: list[tuple[str, Callable[[], None]]] = []
        if self.backup_to_bucket is not None:
            steps.append(("backup_to_bucket", partial(self._backup_to_bucket, key, self.backup_to_bucket)))
        if self.backup_to_dir is not None:
            steps.append(("backup_to_dir", partial(self._backup_to_dir, key, self.backup_to_dir)))
        if self.delete:
            steps.append(("delete", partial(self._delete, key)))

        errors = []
        for name, step in steps:
            try:
                step()
            except (StorageError, OSError) as e:
                logger.error("postprocess_step_failed", key=key, step=name, error=str(e))
                errors.append(f"{name}: {e}")
        return errors

    def _backup_to_bucket(self, key: str, backup_bucket: str) -> None:
        backup_key = self.backup_key(key)
        self.store.copy_object(self.bucket, key, backup_bucket, backup_key)
        logger.debug("object_backed_up", key=key, bucket=backup_bucket, backup_key=backup_key)

    def _backup_to_dir(self, key: str, backup_dir: Path) -> None:
        path = backup_dir / key
        path.parent.mkdir(parents=True, exist_ok=True)
        self.store.download_object(self.bucket, key, path)
        logger.debug("object_downloaded", key=key, path=str(path))

    def _delete(self, key: str) -> None:
        self.store.delete_object(self.bucket, key)
        logger.debug("object_deleted", key=key, bucket=self.bucket)

"""
Aliyun OSS object store.

OSS exposes an S3-compatible API, so the client is a regular boto3 S3
client pointed at the OSS endpoint with virtual-hosted addressing.
botocore exceptions are translated into StorageError so callers never
depend on boto3 types.

Example:
    >>> store = OSSObjectStore.from_settings(settings)
    >>> obj = store.get_object("my-log-bucket", "logs/app.log.gz")
    >>> obj.properties["content-type"]
    'application/gzip'
"""

from __future__ import annotations

import io
from pathlib import Path
from typing import TYPE_CHECKING, Any

import boto3
import structlog
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from oss_ingest import __version__
from oss_ingest.errors import ObjectNotFoundError, StorageError
from oss_ingest.storage.protocol import StoredObject

if TYPE_CHECKING:
    from oss_ingest.config.settings import OSSClientSettings, Settings

logger = structlog.get_logger(__name__)

_NOT_FOUND_CODES = {"404", "NoSuchKey", "NoSuchBucket", "NotFound"}


def build_endpoint_url(endpoint: str, secure: bool | None) -> str:
    """Apply the secure-connection toggle to an endpoint.

    Args:
        endpoint: Endpoint with or without scheme
        secure: True forces https, False forces http, None keeps the
            given scheme (http when absent)
    """
    host = endpoint.split("://", 1)[1] if "://" in endpoint else endpoint
    if secure is None:
        return endpoint if "://" in endpoint else f"http://{host}"
    return f"{'https' if secure else 'http'}://{host}"


def build_client_config(client_settings: OSSClientSettings) -> Config:
    """botocore Config carrying pool size and user agent."""
    return Config(
        max_pool_connections=client_settings.max_connections_to_oss,
        user_agent_extra=f"oss-ingest/{__version__}",
        s3={"addressing_style": "virtual"},
        retries={"mode": "standard"},
    )


def _translate(error: Exception, action: str) -> StorageError:
    if isinstance(error, ClientError):
        code = str(error.response.get("Error", {}).get("Code", ""))
        if code in _NOT_FOUND_CODES:
            return ObjectNotFoundError(f"{action}: {code}")
        return StorageError(f"{action}: {code or error}")
    return StorageError(f"{action}: {error}")


class _StreamingBodyReader(io.RawIOBase):
    """Raw stream over a botocore StreamingBody.

    Errors raised while reading the body (truncated or reset responses)
    surface as StorageError like every other backend failure.
    """

    def __init__(self, body: Any, action: str):
        self._body = body
        self._action = action

    def readable(self) -> bool:
        return True

    def readinto(self, buffer: Any) -> int:
        try:
            data = self._body.read(len(buffer))
        except BotoCoreError as e:
            raise _translate(e, self._action) from e
        buffer[: len(data)] = data
        return len(data)

    def close(self) -> None:
        if not self.closed:
            self._body.close()
        super().close()


class OSSObjectStore:
    """ObjectStore backed by an S3 client talking to OSS."""

    def __init__(self, client: Any):
        """Initialize with a boto3 S3 client (or a compatible stub)."""
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> OSSObjectStore:
        """Create a store from pipeline settings."""
        client_settings = settings.additional_oss_settings
        endpoint_url = build_endpoint_url(
            settings.endpoint, client_settings.secure_connection_enabled
        )
        client = boto3.client(
            "s3",
            endpoint_url=endpoint_url,
            aws_access_key_id=settings.access_key_id,
            aws_secret_access_key=settings.access_key_secret,
            config=build_client_config(client_settings),
        )
        logger.debug("oss_client_created", endpoint=endpoint_url)
        return cls(client)

    def get_object(self, bucket: str, key: str) -> StoredObject:
        try:
            response = self._client.get_object(Bucket=bucket, Key=key)
        except (ClientError, BotoCoreError) as e:
            raise _translate(e, f"get_object {bucket}/{key}") from e

        headers = response.get("ResponseMetadata", {}).get("HTTPHeaders", {})
        body = io.BufferedReader(_StreamingBodyReader(response["Body"], f"read {bucket}/{key}"))
        return StoredObject(body=body, properties=dict(headers))

    def copy_object(self, src_bucket: str, src_key: str, dst_bucket: str, dst_key: str) -> None:
        try:
            self._client.copy_object(
                Bucket=dst_bucket,
                Key=dst_key,
                CopySource={"Bucket": src_bucket, "Key": src_key},
            )
        except (ClientError, BotoCoreError) as e:
            raise _translate(e, f"copy_object {src_bucket}/{src_key} -> {dst_bucket}/{dst_key}") from e

    def download_object(self, bucket: str, key: str, path: Path) -> None:
        try:
            self._client.download_file(bucket, key, str(path))
        except (ClientError, BotoCoreError) as e:
            raise _translate(e, f"download_object {bucket}/{key}") from e

    def delete_object(self, bucket: str, key: str) -> None:
        try:
            self._client.delete_object(Bucket=bucket, Key=key)
        except (ClientError, BotoCoreError) as e:
            raise _translate(e, f"delete_object {bucket}/{key}") from e

    def bucket_exists(self, bucket: str) -> bool:
        try:
            self._client.head_bucket(Bucket=bucket)
        except ClientError as e:
            error = _translate(e, f"head_bucket {bucket}")
            if isinstance(error, ObjectNotFoundError):
                return False
            raise error from e
        except BotoCoreError as e:
            raise _translate(e, f"head_bucket {bucket}") from e
        return True

    def create_bucket(self, bucket: str) -> None:
        try:
            self._client.create_bucket(Bucket=bucket)
        except (ClientError, BotoCoreError) as e:
            raise _translate(e, f"create_bucket {bucket}") from e

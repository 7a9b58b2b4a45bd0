"""
Notification body decoding.

OSS event notifications arrive in MNS as base64 encoded JSON:

    {
      "events": [
        {
          "eventName": "ObjectCreated:PutObject",
          "oss": {
            "bucket": {"name": "my-log-bucket"},
            "object": {"key": "logs/app.log.gz", "size": 1024, "eTag": "..."}
          }
        }
      ]
    }

Each entry of ``events`` becomes one ObjectChangeDescriptor, in order.
"""

from __future__ import annotations

import base64
import binascii
import json
from typing import Any

from oss_ingest.errors import DecodeError
from oss_ingest.models import ObjectChangeDescriptor


def decode_notification(body: str | bytes, bucket: str) -> list[ObjectChangeDescriptor]:
    """Decode a notification body into object descriptors.

    Args:
        body: Base64 encoded JSON document
        bucket: Bucket the descriptors refer to (the configured source bucket)

    Returns:
        Descriptors in the order they appear in the body

    Raises:
        DecodeError: If the body is not base64, not JSON, or lacks the
            expected structure
    """
    if isinstance(body, str):
        body = body.encode("ascii", errors="ignore")

    try:
        document = json.loads(base64.b64decode(body))
    except (binascii.Error, ValueError) as e:
        raise DecodeError(f"notification body is not base64 encoded JSON: {e}") from e

    if not isinstance(document, dict) or not isinstance(document.get("events"), list):
        raise DecodeError("notification body has no 'events' array")

    return [_to_descriptor(event, bucket, index) for index, event in enumerate(document["events"])]


def _to_descriptor(event: Any, bucket: str, index: int) -> ObjectChangeDescriptor:
    try:
        obj = event["oss"]["object"]
        key = obj["key"]
    except (KeyError, TypeError) as e:
        raise DecodeError(f"event {index} has no oss.object.key") from e

    if not isinstance(key, str):
        raise DecodeError(f"event {index} has a non-string key")

    try:
        return ObjectChangeDescriptor(
            event_name=str(event.get("eventName", "")),
            bucket=bucket,
            key=key,
            size=int(obj.get("size") or 0),
            etag=str(obj.get("eTag") or ""),
        )
    except (TypeError, ValueError, OverflowError) as e:
        raise DecodeError(f"event {index} is malformed: {e}") from e


class NotificationDecoder:
    """Decoder bound to one source bucket."""

    def __init__(self, bucket: str):
        self.bucket = bucket

    def decode(self, body: str | bytes) -> list[ObjectChangeDescriptor]:
        """Decode a body; see decode_notification()."""
        return decode_notification(body, self.bucket)


def encode_notification(events: list[dict[str, Any]]) -> str:
    """Build a notification body from event dicts (inverse of decoding).

    Used by the in-memory queue tooling and the CLI to fabricate bodies.
    """
    return base64.b64encode(json.dumps({"events": events}).encode("utf-8")).decode("ascii")


def object_event(
    key: str,
    *,
    bucket: str = "",
    event_name: str = "ObjectCreated:PutObject",
    size: int = 0,
    etag: str = "",
) -> dict[str, Any]:
    """One OSS event entry in notification format."""
    return {
        "eventName": event_name,
        "oss": {
            "bucket": {"name": bucket},
            "object": {"key": key, "size": size, "eTag": etag},
        },
    }

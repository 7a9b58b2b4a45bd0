"""
Aliyun MNS notification queue.

Talks to the MNS REST API with httpx. OSS event notifications are
delivered to an MNS queue; this client long-polls one message at a time
and deletes it by receipt handle once processed.

Request signing:
    Authorization: MNS <AccessKeyId>:<Signature>
    Signature = base64(hmac-sha1(AccessKeySecret, StringToSign))
    StringToSign = VERB \\n Content-MD5 \\n Content-Type \\n Date \\n
                   CanonicalizedMNSHeaders CanonicalizedResource

Example:
    >>> queue = MNSQueue(
    ...     "http://1234567890.mns.cn-hangzhou.aliyuncs.com",
    ...     "oss-events",
    ...     access_key_id="...",
    ...     access_key_secret="...",
    ... )
    >>> message = queue.receive(wait_seconds=10)
    >>> if message:
    ...     queue.acknowledge(message)
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import xml.etree.ElementTree as ET
from datetime import UTC, datetime
from email.utils import formatdate
from urllib.parse import quote, urlencode

import httpx
import structlog

from oss_ingest.errors import QueueError
from oss_ingest.models import NotificationMessage

logger = structlog.get_logger(__name__)

MNS_VERSION = "2015-06-06"
CONTENT_TYPE = "text/xml;charset=UTF-8"
MESSAGE_NOT_EXIST = "MessageNotExist"

# Longest long-poll wait MNS accepts, per request or as the queue default
MAX_WAIT_SECONDS = 30

# Added on top of the long-poll wait for the HTTP read timeout
TIMEOUT_MARGIN_SECONDS = 5.0


def sign_request(
    access_key_secret: str,
    method: str,
    resource: str,
    headers: dict[str, str],
) -> str:
    """Compute the MNS request signature.

    Args:
        access_key_secret: Secret used as the HMAC key
        method: HTTP verb
        resource: Path plus query string, exactly as sent
        headers: Request headers (Content-MD5, Content-Type, Date, x-mns-*)

    Returns:
        Base64 encoded HMAC-SHA1 signature
    """
    lowered = {k.lower(): v for k, v in headers.items()}
    mns_headers = "".join(
        f"{name}:{lowered[name]}\n" for name in sorted(lowered) if name.startswith("x-mns-")
    )
    string_to_sign = "\n".join(
        [
            method.upper(),
            lowered.get("content-md5", ""),
            lowered.get("content-type", ""),
            lowered.get("date", ""),
            mns_headers + resource,
        ]
    )
    digest = hmac.new(
        access_key_secret.encode("utf-8"),
        string_to_sign.encode("utf-8"),
        hashlib.sha1,
    ).digest()
    return base64.b64encode(digest).decode("ascii")


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def parse_xml_fields(content: bytes) -> dict[str, str]:
    """Flatten a one-level MNS XML document into a tag -> text dict.

    Raises:
        QueueError: If the content is not well-formed XML
    """
    try:
        root = ET.fromstring(content)
    except ET.ParseError as e:
        raise QueueError(f"malformed MNS response: {e}") from e
    return {_local_name(child.tag): (child.text or "") for child in root}


class MNSQueue:
    """NotificationQueue backed by an Aliyun MNS queue.

    Attributes:
        endpoint: MNS account endpoint (scheme defaults to http)
        queue_name: Queue to poll
    """

    def __init__(
        self,
        endpoint: str,
        queue: str,
        *,
        access_key_id: str,
        access_key_secret: str,
        client: httpx.Client | None = None,
        timeout: float = 10.0,
    ):
        """Initialize MNS queue client.

        Args:
            endpoint: MNS endpoint, e.g. http://<account>.mns.<region>.aliyuncs.com
            queue: Queue name
            access_key_id: Access key id
            access_key_secret: Access key secret
            client: Preconfigured httpx client (tests inject a MockTransport)
            timeout: Connect/write timeout in seconds
        """
        if "://" not in endpoint:
            endpoint = "http://" + endpoint
        self.endpoint = endpoint.rstrip("/")
        self._queue = queue
        self._access_key_id = access_key_id
        self._access_key_secret = access_key_secret
        self._timeout = timeout
        self._client = client or httpx.Client(timeout=timeout)
        self._owns_client = client is None

    @property
    def queue_name(self) -> str:
        return self._queue

    @property
    def messages_path(self) -> str:
        return f"/queues/{quote(self._queue, safe='')}/messages"

    def _request(
        self,
        method: str,
        params: dict[str, str | int] | None = None,
        *,
        read_timeout: float | None = None,
    ) -> httpx.Response:
        resource = self.messages_path
        if params:
            resource += "?" + urlencode(params)

        headers = {
            "Content-Type": CONTENT_TYPE,
            "Date": formatdate(usegmt=True),
            "x-mns-version": MNS_VERSION,
        }
        signature = sign_request(self._access_key_secret, method, resource, headers)
        headers["Authorization"] = f"MNS {self._access_key_id}:{signature}"

        timeout = httpx.Timeout(self._timeout, read=read_timeout or self._timeout)
        try:
            return self._client.request(
                method, self.endpoint + resource, headers=headers, timeout=timeout
            )
        except httpx.HTTPError as e:
            raise QueueError(f"{method} {resource} failed: {e}") from e

    def receive(self, wait_seconds: int | None = None) -> NotificationMessage | None:
        """Long-poll for one message.

        Returns:
            The message, or None if the queue had nothing within the wait

        Raises:
            QueueError: On transport failure or an unexpected response
        """
        params: dict[str, str | int] | None = None
        # Without a wait the queue's own PollingWaitSeconds applies, up to the maximum
        read_timeout = MAX_WAIT_SECONDS + TIMEOUT_MARGIN_SECONDS
        if wait_seconds is not None:
            params = {"waitseconds": wait_seconds}
            read_timeout = wait_seconds + TIMEOUT_MARGIN_SECONDS

        response = self._request("GET", params, read_timeout=read_timeout)

        if response.status_code == 200:
            return self._to_message(parse_xml_fields(response.content))

        error = parse_xml_fields(response.content) if response.content else {}
        if response.status_code == 404 and error.get("Code") == MESSAGE_NOT_EXIST:
            return None

        raise QueueError(
            f"receive from {self._queue} failed with HTTP {response.status_code}: "
            f"{error.get('Code', '')} {error.get('Message', '')}".rstrip()
        )

    def acknowledge(self, message: NotificationMessage) -> bool:
        """Delete a message by receipt handle."""
        try:
            response = self._request("DELETE", {"ReceiptHandle": message.receipt_handle})
        except QueueError as e:
            logger.error(
                "acknowledge_failed",
                queue=self._queue,
                receipt_handle=message.receipt_handle,
                error=str(e),
            )
            return False

        if response.status_code == 204:
            return True

        error = parse_xml_fields(response.content) if response.content else {}
        logger.error(
            "acknowledge_failed",
            queue=self._queue,
            receipt_handle=message.receipt_handle,
            status=response.status_code,
            code=error.get("Code"),
            error=error.get("Message"),
        )
        return False

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    @staticmethod
    def _to_message(fields: dict[str, str]) -> NotificationMessage:
        if not fields.get("ReceiptHandle"):
            raise QueueError("MNS message without ReceiptHandle")

        enqueue_time = None
        if fields.get("EnqueueTime"):
            enqueue_time = datetime.fromtimestamp(int(fields["EnqueueTime"]) / 1000, tz=UTC)

        return NotificationMessage(
            receipt_handle=fields["ReceiptHandle"],
            body=fields.get("MessageBody", ""),
            message_id=fields.get("MessageId") or None,
            dequeue_count=int(fields.get("DequeueCount") or 1),
            enqueue_time=enqueue_time,
        )

    def __repr__(self) -> str:
        return f"MNSQueue(endpoint={self.endpoint!r}, queue={self._queue!r})"

"""In-memory SQS client for local testing and CI."""

from __future__ import annotations

import asyncio
import hashlib
import itertools
import time
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any


class MockSQSError(Exception):
    """Error raised by MockSQSClient, shaped like a botocore client error code."""

    def __init__(self, code: str, message: str) -> None:
        self.code = code
        super().__init__(f"{code}: {message}")


@dataclass(slots=True)
class _StoredMessage:
    message_id: str
    body: str
    md5_of_body: str
    sent_timestamp: int
    message_attributes: dict[str, Any] = field(default_factory=dict)
    receive_count: int = 0
    receipt_handle: str | None = None
    visible_at: float = 0.0


class MockSQSClient:
    """Simple in-memory client implementing SQS receive/delete/visibility semantics."""

    BASE_URL = "https://sqs.mock.local/000000000000"

    def __init__(
        self,
        *,
        default_visibility_timeout: int = 30,
        poll_interval: float = 0.01,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.default_visibility_timeout = default_visibility_timeout
        self.poll_interval = poll_interval
        self._clock = clock
        self._queues: dict[str, deque[_StoredMessage]] = {}
        self._inflight: dict[str, dict[str, _StoredMessage]] = {}
        self._failures: deque[BaseException] = deque()
        self._deleted: list[tuple[str, str]] = []
        self._visibility_changes: list[tuple[str, str, int]] = []
        self._ids = itertools.count(1)
        self.receive_calls: list[dict[str, Any]] = []

    def create_queue(self, name: str) -> str:
        url = f"{self.BASE_URL}/{name}"
        self._queues.setdefault(url, deque())
        self._inflight.setdefault(url, {})
        return url

    def enqueue(self, queue_url: str, body: str, message_attributes: dict[str, Any] | None = None) -> str:
        """Add a message synchronously and return its id."""
        queue = self._require_queue(queue_url)
        message_id = f"msg-{next(self._ids)}"
        queue.append(
            _StoredMessage(
                message_id=message_id,
                body=body,
                md5_of_body=hashlib.md5(body.encode("utf-8")).hexdigest(),
                sent_timestamp=int(time.time() * 1000),
                message_attributes=dict(message_attributes or {}),
            )
        )
        return message_id

    def fail_next(self, error: BaseException, times: int = 1) -> None:
        """Make the next ``times`` receive calls raise ``error``."""
        for _ in range(times):
            self._failures.append(error)

    async def send_message(
        self,
        *,
        QueueUrl: str,
        MessageBody: str,
        MessageAttributes: dict[str, Any] | None = None,
        **_: Any,
    ) -> dict[str, Any]:
        message_id = self.enqueue(QueueUrl, MessageBody, MessageAttributes)
        return {
            "MessageId": message_id,
            "MD5OfMessageBody": hashlib.md5(MessageBody.encode("utf-8")).hexdigest(),
        }

    async def receive_message(
        self,
        *,
        QueueUrl: str,
        MaxNumberOfMessages: int = 1,
        WaitTimeSeconds: int = 0,
        VisibilityTimeout: int | None = None,
        AttributeNames: list[str] | None = None,
        MessageAttributeNames: list[str] | None = None,
        **extra: Any,
    ) -> dict[str, Any]:
        self.receive_calls.append(
            {
                "QueueUrl": QueueUrl,
                "MaxNumberOfMessages": MaxNumberOfMessages,
                "WaitTimeSeconds": WaitTimeSeconds,
                "VisibilityTimeout": VisibilityTimeout,
                "AttributeNames": AttributeNames,
                "MessageAttributeNames": MessageAttributeNames,
                **extra,
            }
        )
        if self._failures:
            raise self._failures.popleft()
        self._require_queue(QueueUrl)

        timeout = self.default_visibility_timeout if VisibilityTimeout is None else VisibilityTimeout
        batch = self._take_visible(QueueUrl, MaxNumberOfMessages, timeout)
        if not batch and WaitTimeSeconds > 0:
            deadline = self._clock() + WaitTimeSeconds
            while not batch and self._clock() < deadline:
                await asyncio.sleep(self.poll_interval)
                batch = self._take_visible(QueueUrl, MaxNumberOfMessages, timeout)
        if not batch:
            return {}
        return {
            "Messages": [self._render(message, AttributeNames, MessageAttributeNames) for message in batch],
        }

    async def delete_message(self, *, QueueUrl: str, ReceiptHandle: str | None, **_: Any) -> dict[str, Any]:
        message = self._pop_inflight(QueueUrl, ReceiptHandle)
        self._deleted.append((QueueUrl, message.message_id))
        return {}

    async def change_message_visibility(
        self,
        *,
        QueueUrl: str,
        ReceiptHandle: str | None,
        VisibilityTimeout: int,
        **_: Any,
    ) -> dict[str, Any]:
        inflight = self._inflight.get(QueueUrl, {})
        message = inflight.get(ReceiptHandle or "")
        if message is None:
            raise MockSQSError("ReceiptHandleIsInvalid", "The receipt handle provided is not valid")
        self._visibility_changes.append((QueueUrl, message.message_id, VisibilityTimeout))
        if VisibilityTimeout <= 0:
            self._pop_inflight(QueueUrl, ReceiptHandle)
            self._queues[QueueUrl].appendleft(message)
        else:
            message.visible_at = self._clock() + VisibilityTimeout
        return {}

    def get_deleted(self) -> list[tuple[str, str]]:
        return list(self._deleted)

    def get_visibility_changes(self) -> list[tuple[str, str, int]]:
        return list(self._visibility_changes)

    def pending_count(self, queue_url: str) -> int:
        return len(self._queues.get(queue_url, ()))

    def inflight_count(self, queue_url: str) -> int:
        return len(self._inflight.get(queue_url, {}))

    def _require_queue(self, queue_url: str) -> deque[_StoredMessage]:
        queue = self._queues.get(queue_url)
        if queue is None:
            raise MockSQSError("AWS.SimpleQueueService.NonExistentQueue", f"Queue {queue_url} does not exist")
        return queue

    def _pop_inflight(self, queue_url: str, receipt_handle: str | None) -> _StoredMessage:
        message = self._inflight.get(queue_url, {}).pop(receipt_handle or "", None)
        if message is None:
            raise MockSQSError("ReceiptHandleIsInvalid", "The receipt handle provided is not valid")
        message.receipt_handle = None
        return message

    def _take_visible(self, queue_url: str, limit: int, visibility_timeout: int) -> list[_StoredMessage]:
        queue = self._queues[queue_url]
        inflight = self._inflight[queue_url]
        now = self._clock()
        for handle, message in list(inflight.items()):
            if message.visible_at <= now:
                del inflight[handle]
                message.receipt_handle = None
                queue.append(message)

        batch: list[_StoredMessage] = []
        while queue and len(batch) < limit:
            message = queue.popleft()
            message.receive_count += 1
            message.receipt_handle = f"{message.message_id}-rh-{next(self._ids)}"
            message.visible_at = now + visibility_timeout
            inflight[message.receipt_handle] = message
            batch.append(message)
        return batch

    @staticmethod
    def _render(
        message: _StoredMessage,
        attribute_names: list[str] | None,
        message_attribute_names: list[str] | None,
    ) -> dict[str, Any]:
        rendered: dict[str, Any] = {
            "MessageId": message.message_id,
            "ReceiptHandle": message.receipt_handle,
            "MD5OfBody": message.md5_of_body,
            "Body": message.body,
        }
        if attribute_names:
            available = {
                "ApproximateReceiveCount": str(message.receive_count),
                "SentTimestamp": str(message.sent_timestamp),
            }
            wanted = set(attribute_names)
            rendered["Attributes"] = {
                key: value for key, value in available.items() if "All" in wanted or key in wanted
            }
        if message_attribute_names and message.message_attributes:
            wanted = set(message_attribute_names)
            rendered["MessageAttributes"] = {
                key: value
                for key, value in message.message_attributes.items()
                if "All" in wanted or ".*" in wanted or key in wanted
            }
        return rendered

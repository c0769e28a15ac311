"""Received message wrapper with bound acknowledge/visibility operations."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from sqsstream.exceptions import MessageParseError
from sqsstream.stream.protocols import SQSClient
from sqsstream.stream.security import redact_error_message

logger = logging.getLogger(__name__)

CompletionCallback = Callable[[BaseException | None, Any], Any]

# Strong references for fire-and-forget calls until they finish.
_BACKGROUND_TASKS: set[asyncio.Task[Any]] = set()


@dataclass(slots=True)
class SQSMessage:
    """One received SQS message.

    The wrapper keeps the original response entry untouched in ``raw`` and holds
    a reference (not ownership) to the client that received it, so consumers can
    acknowledge or extend the message without access to the stream.
    """

    message_id: str
    receipt_handle: str | None
    body: str
    queue_url: str
    attributes: dict[str, str] = field(default_factory=dict)
    message_attributes: dict[str, Any] = field(default_factory=dict)
    md5_of_body: str | None = None
    raw: dict[str, Any] = field(default_factory=dict, repr=False)
    _client: SQSClient | None = field(default=None, repr=False, compare=False)

    @classmethod
    def from_response(cls, raw: Mapping[str, Any], *, queue_url: str, client: SQSClient) -> SQSMessage:
        """Build a wrapper from one entry of a ``ReceiveMessage`` response."""
        return cls(
            message_id=str(raw.get("MessageId", "")),
            receipt_handle=raw.get("ReceiptHandle"),
            body=raw.get("Body", ""),
            queue_url=queue_url,
            attributes=dict(raw.get("Attributes") or {}),
            message_attributes=dict(raw.get("MessageAttributes") or {}),
            md5_of_body=raw.get("MD5OfBody"),
            raw=dict(raw),
            _client=client,
        )

    def acknowledge(self, callback: CompletionCallback | None = None) -> asyncio.Task[Any]:
        """Delete the message from its queue.

        Returns the background task; ``callback(error, response)`` runs when it
        completes. Without a callback, failures are discarded.
        """
        return self._dispatch(
            "delete_message",
            callback,
            QueueUrl=self.queue_url,
            ReceiptHandle=self.receipt_handle,
        )

    def extend_visibility(
        self,
        visibility: int | CompletionCallback | None = 0,
        callback: CompletionCallback | None = None,
    ) -> asyncio.Task[Any]:
        """Change the message visibility timeout (seconds, default 0).

        Accepts ``extend_visibility(callback)`` as shorthand for a zero timeout,
        which makes the message visible to other consumers immediately.
        """
        if callable(visibility):
            callback, visibility = visibility, 0
        return self._dispatch(
            "change_message_visibility",
            callback,
            QueueUrl=self.queue_url,
            ReceiptHandle=self.receipt_handle,
            VisibilityTimeout=int(visibility or 0),
        )

    def json(self) -> Any:
        """Decode the body as JSON."""
        try:
            return json.loads(self.body)
        except (TypeError, ValueError) as exc:
            raise MessageParseError(self.message_id, str(exc)) from exc

    def _dispatch(
        self,
        operation: str,
        callback: CompletionCallback | None,
        **params: Any,
    ) -> asyncio.Task[Any]:
        task = asyncio.get_running_loop().create_task(
            self._call(operation, params),
            name=f"sqs-{operation}-{self.message_id}",
        )
        _BACKGROUND_TASKS.add(task)

        def _on_done(done: asyncio.Task[Any]) -> None:
            _BACKGROUND_TASKS.discard(done)
            if done.cancelled():
                return
            error = done.exception()
            response = None if error is not None else done.result()
            if callback is None:
                if error is not None:
                    logger.debug(
                        "Ignoring %s failure for message %s: %s",
                        operation,
                        self.message_id,
                        redact_error_message(error),
                    )
                return
            callback(error, response)

        task.add_done_callback(_on_done)
        return task

    async def _call(self, operation: str, params: dict[str, Any]) -> Any:
        if self._client is None:
            raise RuntimeError(f"Message {self.message_id} is not bound to a queue client")
        return await getattr(self._client, operation)(**params)

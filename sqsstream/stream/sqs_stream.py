"""SQS queue exposed as a backpressure-aware readable stream.

Receive cycle:
  demand -> RECEIVING (one ReceiveMessage in flight) -> one of
    * messages: push each in order; if every push accepted, receive again,
      otherwise idle until the next demand signal.
    * empty: end the stream (stop_on_queue_empty) or idle.
    * error: schedule a retry after the current backoff (retry_on_errors) or
      emit ``error`` and end the stream.

At most one receive is in flight, and a scheduled retry counts as in flight
for demand purposes. Once the stream ends or is closed, the client is never
called again and late results are dropped.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from sqsstream.config.models import SQSStreamConfig
from sqsstream.exceptions import InvalidQueueClientError, StreamConfigError
from sqsstream.stream.backoff import ExponentialBackoff
from sqsstream.stream.models import SQSMessage
from sqsstream.stream.protocols import SQSClient, supports_receive
from sqsstream.stream.readable import ReadableStream
from sqsstream.stream.security import redact_error_message

logger = logging.getLogger(__name__)


class SQSReadableStream(ReadableStream):
    """Readable stream of ``SQSMessage`` items polled from one SQS queue.

    Extra events on top of ``ReadableStream``:

    - ``retry(exc, delay)``: a receive failed and will be retried after
      ``delay`` seconds.
    """

    def __init__(
        self,
        sqs_client: SQSClient,
        *,
        config: SQSStreamConfig | None = None,
        **options: Any,
    ) -> None:
        if not supports_receive(sqs_client):
            raise InvalidQueueClientError(sqs_client)
        base = config if config is not None else SQSStreamConfig.from_options()
        self.config = base.merged(options)
        if not self.config.queue_url.strip():
            raise StreamConfigError("queue_url is required")

        super().__init__(high_water_mark=self.config.buffer.high_water_mark)
        self.sqs_client = sqs_client
        self._queue_url = self.config.queue_url
        self._receive_params = self.config.receive.to_params()
        self._backoff = ExponentialBackoff(
            initial=self.config.retry.initial_backoff,
            maximum=self.config.retry.max_backoff,
        )

        self._fetch_in_progress = False
        self._fetch_task: asyncio.Task[None] | None = None
        self._retry_handle: asyncio.TimerHandle | None = None
        self._fetch_count = 0
        self._message_count = 0
        self._retry_count = 0
        self._error_count = 0

    @property
    def queue_url(self) -> str:
        return self._queue_url

    @property
    def fetch_in_progress(self) -> bool:
        return self._fetch_in_progress

    @property
    def current_backoff(self) -> float:
        """Delay the next receive failure will wait before retrying."""
        return self._backoff.current

    def status(self) -> dict[str, Any]:
        """Return a snapshot of stream state and counters."""
        return {
            "queue_url": self._queue_url,
            "flowing": self.flowing,
            "fetch_in_progress": self._fetch_in_progress,
            "retry_scheduled": self._retry_handle is not None,
            "current_backoff": self._backoff.current,
            "ended": self.ended,
            "closed": self.closed,
            "terminated": self.terminated,
            "buffered": self.buffered,
            "fetch_count": self._fetch_count,
            "message_count": self._message_count,
            "retry_count": self._retry_count,
            "error_count": self._error_count,
        }

    def close(self) -> None:
        """Close the stream; an in-flight receive is left to finish and ignored."""
        self._cancel_retry()
        super().close()

    def _fail(self, error: BaseException) -> None:
        self._cancel_retry()
        super()._fail(error)

    def _cancel_retry(self) -> None:
        if self._retry_handle is not None:
            self._retry_handle.cancel()
            self._retry_handle = None

    def _read(self) -> None:
        self._receive()

    def _receive(self) -> None:
        if self._fetch_in_progress or self._retry_handle is not None or self.terminated:
            return
        self._fetch_in_progress = True
        self._fetch_count += 1
        task = asyncio.get_running_loop().create_task(
            self._receive_batch(),
            name=f"sqs-receive-{self._fetch_count}",
        )
        self._fetch_task = task
        task.add_done_callback(self._on_receive_done)

    def _on_retry_timer(self) -> None:
        self._retry_handle = None
        self._receive()

    async def _receive_batch(self) -> None:
        params = {**self._receive_params, "QueueUrl": self._queue_url}
        try:
            response = await self.sqs_client.receive_message(**params)
        except Exception as exc:
            if self.terminated:
                return
            self._handle_receive_error(exc)
            return
        if self.terminated:
            logger.debug("Dropping receive result for %s after termination", self._queue_url)
            return
        self._handle_response(response)

    def _handle_receive_error(self, error: Exception) -> None:
        self._fetch_in_progress = False
        if self.config.retry.retry_on_errors:
            self._retry_count += 1
            delay = self._backoff.next_delay()
            logger.warning(
                "Receive from %s failed, retrying in %.3fs: %s",
                self._queue_url,
                delay,
                redact_error_message(error),
            )
            self._retry_handle = asyncio.get_running_loop().call_later(delay, self._on_retry_timer)
            self.emit("retry", error, delay)
            return

        self._error_count += 1
        logger.error("Receive from %s failed, ending stream: %s", self._queue_url, redact_error_message(error))
        self._fail(error)

    def _handle_response(self, response: dict[str, Any] | None) -> None:
        self._backoff.reset()
        messages = (response or {}).get("Messages") or []

        if not messages:
            if self.config.termination.stop_on_queue_empty:
                logger.debug("Queue %s is empty, ending stream", self._queue_url)
                self.push(None)
                return
            self._fetch_in_progress = False
            self._wake()
            return

        read_more = True
        for raw in messages:
            if self.terminated:
                return
            message = SQSMessage.from_response(raw, queue_url=self._queue_url, client=self.sqs_client)
            self._message_count += 1
            # Every received message is pushed; a full consumer only stops the next receive.
            read_more = self.push(message) and read_more

        if self.terminated:
            return
        self._fetch_in_progress = False
        if read_more:
            self._receive()

    def _on_receive_done(self, task: asyncio.Task[None]) -> None:
        is_current = task is self._fetch_task
        if is_current:
            self._fetch_task = None
        if task.cancelled():
            if is_current:
                self._fetch_in_progress = False
            return
        error = task.exception()
        if error is None:
            return
        # Raised by a consumer listener while a batch was being delivered.
        self._fetch_in_progress = False
        logger.error("Receive cycle for %s crashed: %s", self._queue_url, redact_error_message(error))
        if not self.terminated:
            self._error_count += 1
            self._fail(error)

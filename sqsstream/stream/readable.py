"""Object-mode readable stream driven by consumer demand.

Producers subclass ``ReadableStream`` and implement ``_read()``, the demand
signal. It is called when the consumer starts flowing (``resume()``), when a
pull consumer (``read()`` or ``async for``) drains the buffer below the
high-water mark, and while an async reader is waiting for items. Producers
deliver items with ``push()``, whose return value tells them whether the
consumer wants more.

Consumers either listen for ``data`` events in flowing mode or iterate the
stream with ``async for``; the two modes are not mixed. Events:

- ``data(item)``: one item, flowing mode only.
- ``end()``: the stream ended and every buffered item was consumed.
- ``error(exc)``: fatal producer failure, followed by ``end``.
- ``close()``: the stream was closed.

All state is owned by the event loop thread the stream runs on.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections import deque
from collections.abc import Callable
from typing import Any

from sqsstream.exceptions import StreamStateError

logger = logging.getLogger(__name__)

Listener = Callable[..., Any]


class ReadableStream(ABC):
    """Backpressure-aware object stream."""

    def __init__(self, *, high_water_mark: int = 5) -> None:
        if high_water_mark < 1:
            raise ValueError("high_water_mark must be >= 1")
        self.high_water_mark = high_water_mark
        self._buffer: deque[Any] = deque()
        self._listeners: dict[str, list[Listener]] = {}
        self._flowing: bool | None = None
        self._ended = False
        self._end_emitted = False
        self._closed = False
        self._error: BaseException | None = None
        self._readers = 0
        self._changed = asyncio.Event()

    @abstractmethod
    def _read(self) -> None:
        """Demand signal: the consumer is ready for more items."""

    @property
    def flowing(self) -> bool:
        return bool(self._flowing)

    @property
    def ended(self) -> bool:
        return self._ended

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def terminated(self) -> bool:
        """True once end-of-stream was pushed or the stream was closed."""
        return self._ended or self._closed

    @property
    def buffered(self) -> int:
        return len(self._buffer)

    def on(self, event: str, listener: Listener) -> ReadableStream:
        self._listeners.setdefault(event, []).append(listener)
        return self

    def once(self, event: str, listener: Listener) -> ReadableStream:
        def _once(*args: Any) -> Any:
            self.off(event, _once)
            return listener(*args)

        return self.on(event, _once)

    def off(self, event: str, listener: Listener) -> ReadableStream:
        listeners = self._listeners.get(event, [])
        if listener in listeners:
            listeners.remove(listener)
        return self

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, ()))

    def emit(self, event: str, *args: Any) -> bool:
        """Call listeners registered for ``event``; return whether any existed."""
        listeners = list(self._listeners.get(event, ()))
        for listener in listeners:
            listener(*args)
        return bool(listeners)

    def push(self, item: Any) -> bool:
        """Deliver ``item`` to the consumer; ``None`` ends the stream.

        Returns False once the buffer reaches the high-water mark, meaning the
        producer should stop until the next demand signal.
        """
        if self._closed:
            return False
        if self._ended:
            raise StreamStateError("push() after end of stream")
        if item is None:
            self._ended = True
            self._changed.set()
            if self._flowing:
                self._maybe_emit_end()
            return False
        if self._flowing and not self._buffer:
            self.emit("data", item)
        else:
            self._buffer.append(item)
            self._changed.set()
        return len(self._buffer) < self.high_water_mark

    def pause(self) -> ReadableStream:
        """Stop emitting ``data`` events and stop issuing demand."""
        self._flowing = False
        return self

    def resume(self) -> ReadableStream:
        """Switch to flowing mode, flush buffered items and request more."""
        if self._closed:
            return self
        self._flowing = True
        while self._flowing and self._buffer:
            self.emit("data", self._buffer.popleft())
        if not self._flowing:
            return self
        if self._ended:
            self._maybe_emit_end()
        elif len(self._buffer) < self.high_water_mark:
            self._read()
        return self

    def read(self) -> Any | None:
        """Pop one buffered item, or None when nothing is buffered."""
        if self._closed:
            return None
        item = self._buffer.popleft() if self._buffer else None
        if self._ended:
            self._maybe_emit_end()
        elif len(self._buffer) < self.high_water_mark:
            self._read()
        return item

    def close(self) -> None:
        """Close the stream, dropping buffered items. Idempotent."""
        if self._closed:
            return
        self._closed = True
        self._flowing = False
        self._buffer.clear()
        self._changed.set()
        logger.debug("%s closed", type(self).__name__)
        self.emit("close")

    def _fail(self, error: BaseException) -> None:
        """Report a fatal producer error and end the stream."""
        self._error = error
        try:
            self.emit("error", error)
        finally:
            if not self.terminated:
                self.push(None)

    def _wake(self) -> None:
        """Re-issue demand for consumers still waiting after an idle fetch."""
        if self.terminated:
            return
        if self._readers:
            self._changed.set()
        elif self._flowing and len(self._buffer) < self.high_water_mark:
            self._read()

    def _maybe_emit_end(self) -> None:
        if self._ended and not self._buffer and not self._end_emitted and not self._closed:
            self._end_emitted = True
            self.emit("end")

    def __aiter__(self) -> ReadableStream:
        if self._flowing:
            raise StreamStateError("cannot iterate a flowing stream; call pause() first")
        return self

    async def __anext__(self) -> Any:
        while True:
            if self._buffer:
                item = self._buffer.popleft()
                if not self._ended and len(self._buffer) < self.high_water_mark:
                    self._read()
                return item
            if self._closed:
                raise StopAsyncIteration
            if self._error is not None:
                error, self._error = self._error, None
                raise error
            if self._ended:
                self._maybe_emit_end()
                raise StopAsyncIteration
            self._changed.clear()
            self._readers += 1
            try:
                self._read()
                await self._changed.wait()
            finally:
                self._readers -= 1

    async def __aenter__(self) -> ReadableStream:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.close()

"""Exceptions raised by sqsstream.

Messages never include credentials or receipt handles.
"""


class SQSStreamError(Exception):
    """Base exception for sqsstream."""

    pass


class StreamConfigError(SQSStreamError, ValueError):
    """Raised when stream configuration is invalid or missing."""

    pass


class ConfigLoadError(StreamConfigError):
    """Raised when a configuration file cannot be read or parsed."""

    pass


class InvalidQueueClientError(SQSStreamError, TypeError):
    """Raised when the supplied queue client cannot receive messages."""

    def __init__(self, client: object) -> None:
        self.client_type = type(client).__name__
        super().__init__(
            f"Queue client {self.client_type!r} must provide an async receive_message(); "
            "pass an SQS client from aioboto3 or MockSQSClient"
        )


class StreamStateError(SQSStreamError, RuntimeError):
    """Raised when an operation is not allowed in the stream's current state."""

    pass


class MessageParseError(SQSStreamError, ValueError):
    """Raised when a message body cannot be decoded."""

    def __init__(self, message_id: str | None, reason: str) -> None:
        self.message_id = message_id
        super().__init__(f"Failed to parse message {message_id or '<unknown>'}: {reason}")

"""sqsstream: an Amazon SQS queue as a backpressure-aware readable stream."""

from sqsstream.config import (
    BufferOptions,
    ReceiveMessageOptions,
    RetryPolicy,
    SQSStreamConfig,
    TerminationPolicy,
    load_stream_config,
)
from sqsstream.exceptions import (
    ConfigLoadError,
    InvalidQueueClientError,
    MessageParseError,
    SQSStreamError,
    StreamConfigError,
    StreamStateError,
)
from sqsstream.stream import ExponentialBackoff, ReadableStream, SQSMessage, SQSReadableStream

__version__ = "0.1.0"

__all__ = [
    "BufferOptions",
    "ConfigLoadError",
    "ExponentialBackoff",
    "InvalidQueueClientError",
    "MessageParseError",
    "ReadableStream",
    "ReceiveMessageOptions",
    "RetryPolicy",
    "SQSMessage",
    "SQSReadableStream",
    "SQSStreamConfig",
    "SQSStreamError",
    "StreamConfigError",
    "StreamStateError",
    "TerminationPolicy",
    "load_stream_config",
]

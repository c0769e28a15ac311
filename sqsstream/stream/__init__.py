"""Readable stream core: SQS adapter, message handles, backoff, and log redaction."""

from sqsstream.stream.backoff import ExponentialBackoff
from sqsstream.stream.models import SQSMessage
from sqsstream.stream.protocols import SQSClient, supports_receive
from sqsstream.stream.readable import ReadableStream
from sqsstream.stream.security import (
    SensitiveDataLogFilter,
    redact_error_message,
    redact_sensitive_data,
    redact_sensitive_text,
)
from sqsstream.stream.sqs_stream import SQSReadableStream

__all__ = [
    "ExponentialBackoff",
    "ReadableStream",
    "SQSClient",
    "SQSMessage",
    "SQSReadableStream",
    "SensitiveDataLogFilter",
    "redact_error_message",
    "redact_sensitive_data",
    "redact_sensitive_text",
    "supports_receive",
]

"""External integrations: SQS clients (isolated layer)."""

from sqsstream.integrations.sqs_clients import (
    MockSQSClient,
    MockSQSError,
    ensure_client_dependency,
    open_sqs_client,
    open_sqs_stream,
)

__all__ = ["MockSQSClient", "MockSQSError", "ensure_client_dependency", "open_sqs_client", "open_sqs_stream"]

"""SQS client implementations and factories."""

from sqsstream.integrations.sqs_clients.aioboto import open_sqs_client, open_sqs_stream
from sqsstream.integrations.sqs_clients.dependencies import client_available, ensure_client_dependency
from sqsstream.integrations.sqs_clients.mock import MockSQSClient, MockSQSError

__all__ = ["MockSQSClient", "MockSQSError", "client_available", "ensure_client_dependency", "open_sqs_client", "open_sqs_stream"]

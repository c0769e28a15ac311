"""Unit tests for the in-memory SQS client."""

from __future__ import annotations

import pytest

from sqsstream.integrations import MockSQSClient, MockSQSError


@pytest.mark.asyncio
async def test_receive_respects_batch_size_and_order(mock_sqs: MockSQSClient, queue_url: str) -> None:
    for index in range(3):
        mock_sqs.enqueue(queue_url, f"body-{index}")

    response = await mock_sqs.receive_message(QueueUrl=queue_url, MaxNumberOfMessages=2)

    assert [message["Body"] for message in response["Messages"]] == ["body-0", "body-1"]
    assert mock_sqs.pending_count(queue_url) == 1
    assert mock_sqs.inflight_count(queue_url) == 2


@pytest.mark.asyncio
async def test_receive_on_empty_queue_returns_empty_response(mock_sqs: MockSQSClient, queue_url: str) -> None:
    assert await mock_sqs.receive_message(QueueUrl=queue_url, WaitTimeSeconds=0) == {}


@pytest.mark.asyncio
async def test_receive_renders_requested_attributes(mock_sqs: MockSQSClient, queue_url: str) -> None:
    mock_sqs.enqueue(queue_url, "x", {"tenant": {"DataType": "String", "StringValue": "t-1"}})

    response = await mock_sqs.receive_message(
        QueueUrl=queue_url,
        AttributeNames=["ApproximateReceiveCount"],
        MessageAttributeNames=["All"],
    )

    message = response["Messages"][0]
    assert message["Attributes"] == {"ApproximateReceiveCount": "1"}
    assert message["MessageAttributes"]["tenant"]["StringValue"] == "t-1"


@pytest.mark.asyncio
async def test_delete_removes_inflight_message(mock_sqs: MockSQSClient, queue_url: str) -> None:
    message_id = mock_sqs.enqueue(queue_url, "x")
    response = await mock_sqs.receive_message(QueueUrl=queue_url)
    handle = response["Messages"][0]["ReceiptHandle"]

    await mock_sqs.delete_message(QueueUrl=queue_url, ReceiptHandle=handle)

    assert mock_sqs.get_deleted() == [(queue_url, message_id)]
    assert mock_sqs.inflight_count(queue_url) == 0
    with pytest.raises(MockSQSError, match="ReceiptHandleIsInvalid"):
        await mock_sqs.delete_message(QueueUrl=queue_url, ReceiptHandle=handle)


@pytest.mark.asyncio
async def test_zero_visibility_makes_message_receivable_again(mock_sqs: MockSQSClient, queue_url: str) -> None:
    mock_sqs.enqueue(queue_url, "x")
    first = (await mock_sqs.receive_message(QueueUrl=queue_url))["Messages"][0]

    await mock_sqs.change_message_visibility(
        QueueUrl=queue_url, ReceiptHandle=first["ReceiptHandle"], VisibilityTimeout=0
    )
    second = (await mock_sqs.receive_message(QueueUrl=queue_url, AttributeNames=["All"]))["Messages"][0]

    assert second["MessageId"] == first["MessageId"]
    assert second["ReceiptHandle"] != first["ReceiptHandle"]
    assert second["Attributes"]["ApproximateReceiveCount"] == "2"


@pytest.mark.asyncio
async def test_visibility_timeout_expiry_uses_clock() -> None:
    now = [100.0]
    client = MockSQSClient(clock=lambda: now[0])
    url = client.create_queue("orders")
    client.enqueue(url, "x")

    await client.receive_message(QueueUrl=url, VisibilityTimeout=30)
    assert await client.receive_message(QueueUrl=url) == {}

    now[0] += 31
    response = await client.receive_message(QueueUrl=url)
    assert len(response["Messages"]) == 1


@pytest.mark.asyncio
async def test_fail_next_raises_for_requested_calls(mock_sqs: MockSQSClient, queue_url: str) -> None:
    mock_sqs.fail_next(ConnectionError("down"), times=2)

    for _ in range(2):
        with pytest.raises(ConnectionError):
            await mock_sqs.receive_message(QueueUrl=queue_url)
    assert await mock_sqs.receive_message(QueueUrl=queue_url) == {}
    assert len(mock_sqs.receive_calls) == 3


@pytest.mark.asyncio
async def test_unknown_queue_raises(mock_sqs: MockSQSClient) -> None:
    with pytest.raises(MockSQSError, match="NonExistentQueue"):
        await mock_sqs.receive_message(QueueUrl="https://sqs.mock.local/000000000000/missing")


@pytest.mark.asyncio
async def test_send_message_enqueues(mock_sqs: MockSQSClient, queue_url: str) -> None:
    sent = await mock_sqs.send_message(QueueUrl=queue_url, MessageBody="hello")
    response = await mock_sqs.receive_message(QueueUrl=queue_url)
    assert response["Messages"][0]["MessageId"] == sent["MessageId"]
    assert response["Messages"][0]["MD5OfBody"] == sent["MD5OfMessageBody"]

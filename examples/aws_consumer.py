"""
Consume a real SQS queue (or LocalStack) with aioboto3.

Requires the ``sqs`` extra:
  poetry install --extras sqs
  SQSSTREAM_QUEUE_URL=https://sqs.us-east-1.amazonaws.com/123456789012/orders \
    poetry run python examples/aws_consumer.py

Stream options can also come from sqsstream.yaml (see sqsstream.example.yaml).
"""

import asyncio
import logging
import os

from sqsstream import load_stream_config
from sqsstream.integrations import open_sqs_stream

logger = logging.getLogger("aws_consumer")


async def main() -> None:
    logging.basicConfig(level=logging.INFO)
    config = load_stream_config()
    async with open_sqs_stream(
        config=config,
        region_name=os.getenv("AWS_REGION", "us-east-1"),
        endpoint_url=os.getenv("SQS_ENDPOINT_URL"),
    ) as stream:
        async for message in stream:
            logger.info("Received %s: %s", message.message_id, message.body)
            # Keep the message hidden while it is processed, then delete it.
            await message.extend_visibility(60)
            await message.acknowledge()


if __name__ == "__main__":
    asyncio.run(main())

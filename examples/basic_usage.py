"""
Basic usage of sqsstream against the in-memory queue client.

Run from repo root:
  poetry run python examples/basic_usage.py
"""

import asyncio
import logging

from sqsstream import SQSReadableStream
from sqsstream.integrations import MockSQSClient
from sqsstream.stream import SensitiveDataLogFilter


async def pull_consumer(client: MockSQSClient, queue_url: str) -> None:
    # 1. Pull mode: iterate the stream; each step issues demand as the buffer drains.
    async with SQSReadableStream(
        client,
        queue_url=queue_url,
        stop_on_queue_empty=True,
        receive_message_options={"wait_time_seconds": 0, "max_number_of_messages": 2},
        stream_options={"high_water_mark": 2},
    ) as stream:
        async for message in stream:
            order = message.json()
            print(f"pulled order {order['id']} (receive #{message.attributes['ApproximateReceiveCount']})")
            await message.acknowledge()


async def flowing_consumer(client: MockSQSClient, queue_url: str) -> None:
    # 2. Flowing mode: data events, with pause()/resume() as manual backpressure.
    stream = SQSReadableStream(client, queue_url=queue_url, stop_on_queue_empty=True)
    done = asyncio.get_running_loop().create_future()

    def on_data(message) -> None:
        print(f"flowing message {message.message_id}: {message.body}")
        stream.pause()
        message.acknowledge(lambda error, _response: stream.resume() if error is None else done.set_exception(error))

    stream.on("data", on_data)
    stream.on("retry", lambda error, delay: print(f"receive failed ({error}), retrying in {delay:.2f}s"))
    stream.on("end", lambda: done.set_result(None))
    stream.resume()
    await done
    print(stream.status())


async def main() -> None:
    logging.basicConfig(level=logging.INFO)
    for handler in logging.getLogger().handlers:
        handler.addFilter(SensitiveDataLogFilter())

    client = MockSQSClient()
    queue_url = client.create_queue("orders")
    for order_id in range(5):
        client.enqueue(queue_url, f'{{"id": {order_id}}}')
    await pull_consumer(client, queue_url)

    for order_id in range(5, 8):
        client.enqueue(queue_url, f'{{"id": {order_id}}}')
    client.fail_next(ConnectionError("connection reset by peer"))
    await flowing_consumer(client, queue_url)


if __name__ == "__main__":
    asyncio.run(main())

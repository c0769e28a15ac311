"""aioboto3-backed SQS client and stream factories."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from sqsstream.config.models import SQSStreamConfig
from sqsstream.integrations.sqs_clients.dependencies import ensure_client_dependency
from sqsstream.stream.sqs_stream import SQSReadableStream

logger = logging.getLogger(__name__)


def _import_aioboto3() -> Any:
    """Import aioboto3 lazily so the optional dependency is only needed at runtime."""
    ensure_client_dependency("sqs")
    import aioboto3  # type: ignore[import-not-found]

    return aioboto3


@asynccontextmanager
async def open_sqs_client(
    *,
    region_name: str | None = None,
    endpoint_url: str | None = None,
    session: Any | None = None,
    **client_kwargs: Any,
) -> AsyncIterator[Any]:
    """Yield an aioboto3 SQS client, closing it on exit."""
    if session is None:
        session = _import_aioboto3().Session()
    kwargs = {key: value for key, value in (("region_name", region_name), ("endpoint_url", endpoint_url)) if value}
    kwargs.update(client_kwargs)
    async with session.client("sqs", **kwargs) as client:
        logger.debug("SQS client opened (region=%s, endpoint=%s)", region_name, endpoint_url)
        yield client


@asynccontextmanager
async def open_sqs_stream(
    queue_url: str | None = None,
    *,
    config: SQSStreamConfig | None = None,
    region_name: str | None = None,
    endpoint_url: str | None = None,
    session: Any | None = None,
    **options: Any,
) -> AsyncIterator[SQSReadableStream]:
    """Yield an ``SQSReadableStream`` over a fresh aioboto3 client.

    The stream is closed before the client, so a receive still in flight when
    the block exits is ignored rather than reported.
    """
    async with open_sqs_client(region_name=region_name, endpoint_url=endpoint_url, session=session) as client:
        stream = SQSReadableStream(client, config=config, queue_url=queue_url, **options)
        try:
            yield stream
        finally:
            stream.close()

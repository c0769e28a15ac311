"""Queue client protocol consumed by the stream and message handles."""

from __future__ import annotations

from typing import Any, Protocol


class SQSClient(Protocol):
    """Subset of the aioboto3 SQS client used by sqsstream."""

    async def receive_message(self, **params: Any) -> dict[str, Any]:
        """Receive a batch of messages; the response carries a ``Messages`` list."""

    async def delete_message(self, **params: Any) -> Any:
        """Delete (acknowledge) one message by receipt handle."""

    async def change_message_visibility(self, **params: Any) -> Any:
        """Change the visibility timeout of one in-flight message."""


def supports_receive(client: object) -> bool:
    """Return whether ``client`` exposes a callable ``receive_message``."""
    return client is not None and callable(getattr(client, "receive_message", None))

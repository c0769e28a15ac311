"""Optional dependency checks for queue clients."""

from __future__ import annotations

from importlib.util import find_spec
from typing import NamedTuple


class ClientDependency(NamedTuple):
    module: str
    extra: str


# "mock" is built in and needs nothing.
_CLIENT_KINDS: dict[str, ClientDependency | None] = {
    "mock": None,
    "sqs": ClientDependency(module="aioboto3", extra="sqs"),
}


def client_available(client_type: str) -> bool:
    """Return whether the client kind can be used in this environment."""
    dependency = _lookup(client_type)
    return dependency is None or find_spec(dependency.module) is not None


def ensure_client_dependency(client_type: str) -> None:
    """Raise RuntimeError with an install hint when a client's package is missing."""
    dependency = _lookup(client_type)
    if dependency is None or find_spec(dependency.module) is not None:
        return
    raise RuntimeError(
        f"Queue client '{client_type.strip().lower()}' requires '{dependency.module}'. "
        f"Install with: pip install 'sqsstream[{dependency.extra}]'"
    )


def _lookup(client_type: str) -> ClientDependency | None:
    normalized = client_type.strip().lower()
    if normalized not in _CLIENT_KINDS:
        raise ValueError(
            f"Unsupported queue client type: {client_type}. Supported: {', '.join(sorted(_CLIENT_KINDS))}"
        )
    return _CLIENT_KINDS[normalized]

"""Configuration models and loaders for sqsstream."""

from sqsstream.config.loader import YAMLConfigLoader, expand_env_placeholders, load_stream_config
from sqsstream.config.models import (
    BufferOptions,
    ReceiveMessageOptions,
    RetryPolicy,
    SQSStreamConfig,
    TerminationPolicy,
)

__all__ = [
    "BufferOptions",
    "ReceiveMessageOptions",
    "RetryPolicy",
    "SQSStreamConfig",
    "TerminationPolicy",
    "YAMLConfigLoader",
    "expand_env_placeholders",
    "load_stream_config",
]

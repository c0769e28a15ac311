"""Configuration models for sqsstream.

Each concern has its own model with documented defaults. Supplied options are
merged field by field, so passing ``receive_message_options={"wait_time_seconds": 1}``
keeps every other receive default instead of replacing the whole section.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from sqsstream.exceptions import StreamConfigError


class RetryPolicy(BaseModel):
    """Receive failure handling. Delays are in seconds."""

    retry_on_errors: bool = Field(default=True, description="Retry failed receives instead of ending the stream.")
    initial_backoff: float = Field(default=0.1, gt=0, description="Delay before the first retry.")
    max_backoff: float = Field(default=15.0, gt=0, description="Upper bound for the doubling retry delay.")

    @model_validator(mode="after")
    def _check_bounds(self) -> RetryPolicy:
        if self.max_backoff < self.initial_backoff:
            raise ValueError("max_backoff must be >= initial_backoff")
        return self


_SQS_PARAMETER_FIELDS: dict[str, str] = {
    "AttributeNames": "attribute_names",
    "MessageAttributeNames": "message_attribute_names",
    "MaxNumberOfMessages": "max_number_of_messages",
    "WaitTimeSeconds": "wait_time_seconds",
    "VisibilityTimeout": "visibility_timeout",
}


class ReceiveMessageOptions(BaseModel):
    """Options forwarded to ``ReceiveMessage``.

    SQS parameter names of declared fields (``WaitTimeSeconds`` ...) are
    validated as those fields and take precedence over the snake_case form.
    Other unknown keys are kept and passed through verbatim, which allows raw
    SQS parameters such as ``ReceiveRequestAttemptId``.
    """

    model_config = ConfigDict(extra="allow")

    attribute_names: list[str] = Field(default_factory=lambda: ["All"])
    message_attribute_names: list[str] | None = Field(default=None)
    max_number_of_messages: int = Field(default=10, ge=1, le=10)
    wait_time_seconds: int = Field(default=20, ge=0, le=20)
    visibility_timeout: int | None = Field(default=None, ge=0, le=43200)

    @model_validator(mode="before")
    @classmethod
    def _adopt_sqs_parameter_names(cls, data: Any) -> Any:
        if not isinstance(data, Mapping):
            return data
        adopted = dict(data)
        for sqs_name, field_name in _SQS_PARAMETER_FIELDS.items():
            if sqs_name in adopted:
                adopted[field_name] = adopted.pop(sqs_name)
        return adopted

    def to_params(self) -> dict[str, Any]:
        """Render the SQS request parameters, excluding ``QueueUrl``."""
        params: dict[str, Any] = {
            "AttributeNames": list(self.attribute_names),
            "MaxNumberOfMessages": self.max_number_of_messages,
            "WaitTimeSeconds": self.wait_time_seconds,
        }
        if self.message_attribute_names is not None:
            params["MessageAttributeNames"] = list(self.message_attribute_names)
        if self.visibility_timeout is not None:
            params["VisibilityTimeout"] = self.visibility_timeout
        params.update(self.model_extra or {})
        return params


class TerminationPolicy(BaseModel):
    """End-of-stream behaviour."""

    stop_on_queue_empty: bool = Field(
        default=False,
        description="End the stream on the first empty receive instead of waiting for new messages.",
    )


class BufferOptions(BaseModel):
    """Consumer-side buffering."""

    high_water_mark: int = Field(default=5, ge=1, description="Buffered messages before push reports full.")


_FLAT_OPTIONS: dict[str, str] = {
    "retry_on_errors": "retry",
    "initial_backoff": "retry",
    "max_backoff": "retry",
    "stop_on_queue_empty": "termination",
    "high_water_mark": "buffer",
}

_SECTION_ALIASES: dict[str, str] = {
    "retry": "retry",
    "receive": "receive",
    "receive_message_options": "receive",
    "termination": "termination",
    "buffer": "buffer",
    "stream_options": "buffer",
}


class SQSStreamConfig(BaseSettings):
    """Root configuration for an SQS readable stream."""

    queue_url: str = Field(default="", description="URL of the SQS queue to read.")
    retry: RetryPolicy = Field(default_factory=RetryPolicy)
    receive: ReceiveMessageOptions = Field(default_factory=ReceiveMessageOptions)
    termination: TerminationPolicy = Field(default_factory=TerminationPolicy)
    buffer: BufferOptions = Field(default_factory=BufferOptions)

    model_config = SettingsConfigDict(
        env_prefix="SQSSTREAM_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    @classmethod
    def from_options(cls, options: Mapping[str, Any] | None = None, **kwargs: Any) -> SQSStreamConfig:
        """Build a config from defaults, environment, then ``options``."""
        try:
            base = cls()
        except ValidationError as exc:
            raise StreamConfigError(f"Invalid stream configuration: {_summarize(exc)}") from exc
        return base.merged(options, **kwargs)

    def merged(self, overrides: Mapping[str, Any] | None = None, **kwargs: Any) -> SQSStreamConfig:
        """Return a copy with ``overrides`` applied field by field.

        Accepts flat option names (``initial_backoff``, ``high_water_mark`` ...)
        and section mappings (``retry``, ``receive`` / ``receive_message_options``,
        ``termination``, ``buffer`` / ``stream_options``). ``None`` values are
        treated as not supplied.
        """
        updates = {**(overrides or {}), **kwargs}
        data = self.model_dump(mode="python")
        for key, value in updates.items():
            if value is None:
                continue
            if key == "queue_url":
                data["queue_url"] = value
            elif key in _FLAT_OPTIONS:
                data[_FLAT_OPTIONS[key]][key] = value
            elif key in _SECTION_ALIASES:
                section = _SECTION_ALIASES[key]
                if isinstance(value, BaseModel):
                    value = value.model_dump(mode="python", exclude_unset=True)
                if not isinstance(value, Mapping):
                    raise StreamConfigError(f"{key} must be a mapping")
                data[section].update(value)
            else:
                raise StreamConfigError(f"Unknown stream option: {key}")
        try:
            return type(self)(**data)
        except ValidationError as exc:
            raise StreamConfigError(f"Invalid stream configuration: {_summarize(exc)}") from exc


def _summarize(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ()))
        parts.append(f"{location or '<root>'}: {error.get('msg', 'invalid value')}")
    return "; ".join(parts)

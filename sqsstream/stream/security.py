"""Masking of AWS credentials and receipt handles in logs and error text."""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from typing import Any

MASK = "***"

_SENSITIVE_KEY_MARKERS = (
    "password",
    "passwd",
    "secret",
    "token",
    "access_key",
    "accesskey",
    "receipthandle",
    "receipt_handle",
)

# Applied in order; each replacement keeps the label and drops the value.
_TEXT_RULES: tuple[tuple[re.Pattern[str], str], ...] = (
    (
        re.compile(
            r"(?i)\b(password|passwd|secret|aws_secret_access_key|aws_session_token|session[_-]?token|"
            r"token|receipt[_-]?handle)\b(\s*[:=]\s*)[^\s,;]+"
        ),
        rf"\1\2{MASK}",
    ),
    (re.compile(r"(?i)\b(X-Amz-(?:Signature|Security-Token|Credential))=[^&\s]+"), rf"\1={MASK}"),
    (re.compile(r"\b(AKIA|ASIA)[A-Z0-9]{16}\b"), rf"\1{MASK}"),
    (re.compile(r"(?i)\bbearer\s+\S+"), f"Bearer {MASK}"),
)


def redact_sensitive_text(text: str) -> str:
    """Mask credentials, signed-URL parameters and receipt handles in ``text``."""
    for pattern, replacement in _TEXT_RULES:
        text = pattern.sub(replacement, text)
    return text


def _is_sensitive_key(key: Any) -> bool:
    lowered = str(key).lower()
    return any(marker in lowered for marker in _SENSITIVE_KEY_MARKERS)


def redact_sensitive_data(value: Any) -> Any:
    """Return a copy of nested mappings/sequences with sensitive values masked."""
    if isinstance(value, Mapping):
        return {
            key: MASK if _is_sensitive_key(key) else redact_sensitive_data(item)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        return type(value)(redact_sensitive_data(item) for item in value)
    if isinstance(value, str):
        return redact_sensitive_text(value)
    return value


def redact_error_message(error: BaseException | str) -> str:
    return redact_sensitive_text(str(error))


class SensitiveDataLogFilter(logging.Filter):
    """Render each record eagerly and mask what would reach the handlers."""

    def filter(self, record: logging.LogRecord) -> bool:
        if record.args:
            args = redact_sensitive_data(record.args)
            try:
                message = str(record.msg) % args
            except (TypeError, ValueError, KeyError):
                message = f"{record.msg} {args!r}"
        else:
            message = str(record.msg)
        record.msg = redact_sensitive_text(message)
        record.args = ()
        return True

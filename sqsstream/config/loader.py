"""Stream configuration files.

A file holds either a top-level ``sqs_stream:`` mapping or the stream options
directly. String values may reference environment variables as ``${NAME}``;
unset variables expand to an empty string.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import yaml  # type: ignore[import-untyped]

from sqsstream.config.models import SQSStreamConfig
from sqsstream.exceptions import ConfigLoadError

_ENV_PLACEHOLDER = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


class YAMLConfigLoader:
    """Locate and parse sqsstream.yaml."""

    DEFAULT_FILENAME = "sqsstream.yaml"
    ENV_VAR = "SQSSTREAM_CONFIG"
    SECTION = "sqs_stream"

    @classmethod
    def resolve_path(cls, path: str | Path | None = None) -> Path:
        """Pick the file to read: ``$SQSSTREAM_CONFIG``, then ``path``, then ./sqsstream.yaml."""
        for candidate in (os.environ.get(cls.ENV_VAR), path):
            if candidate is not None and str(candidate).strip():
                return Path(str(candidate).strip())
        return Path.cwd() / cls.DEFAULT_FILENAME

    @classmethod
    def load_dict(cls, path: str | Path | None = None) -> dict[str, Any]:
        """Parse the whole file. A missing or blank file is an empty mapping."""
        target = Path(path) if path is not None else cls.resolve_path()
        try:
            text = target.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        document = _parse_yaml(text, target)
        if document is None:
            return {}
        if not isinstance(document, dict):
            raise ConfigLoadError(f"Config root must be mapping: {target}")
        return document

    @classmethod
    def load_section(cls, path: str | Path | None = None) -> dict[str, Any]:
        """Return the stream options with ``${NAME}`` placeholders expanded."""
        document = cls.load_dict(path)
        section = document.get(cls.SECTION, document)
        if not isinstance(section, dict):
            raise ConfigLoadError(f"{cls.SECTION} section must be a mapping")
        return expand_env_placeholders(section)


def _parse_yaml(text: str, source: Path) -> Any:
    try:
        return yaml.safe_load(text)
    except yaml.MarkedYAMLError as exc:
        mark = exc.problem_mark or exc.context_mark
        location = f":{mark.line + 1}:{mark.column + 1}" if mark is not None else ""
        raise ConfigLoadError(f"Invalid YAML at {source}{location}: {exc.problem}") from exc
    except yaml.YAMLError as exc:
        raise ConfigLoadError(f"Invalid YAML at {source}") from exc


def expand_env_placeholders(value: Any) -> Any:
    """Substitute ``${NAME}`` in every string nested in ``value``."""
    if isinstance(value, str):
        return _ENV_PLACEHOLDER.sub(lambda match: os.environ.get(match.group(1), ""), value)
    if isinstance(value, dict):
        return {key: expand_env_placeholders(item) for key, item in value.items()}
    if isinstance(value, list):
        return [expand_env_placeholders(item) for item in value]
    return value


def load_stream_config(path: str | Path | None = None, **overrides: Any) -> SQSStreamConfig:
    """Defaults, then environment, then the YAML file, then ``overrides``."""
    return SQSStreamConfig.from_options(YAMLConfigLoader.load_section(path)).merged(overrides)

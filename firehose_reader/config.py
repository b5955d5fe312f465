"""
Reader configuration.

Settings can come from environment variables or from the ``reader`` section
of a YAML settings file:

```yaml
reader:
  line_prefix: FIRE
  stats_interval: 30
  parse_time_window: 5
  log_level: INFO
  json_logs: true
```
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

import yaml

from .exceptions import ConfigError

ENV_PREFIX = "FIREHOSE_READER_"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass
class ReaderConfig:
    """Configuration for the console reader."""

    line_prefix: str = "FIRE"
    stats_interval: float = 30.0  # seconds between statistics logs, <= 0 disables
    parse_time_window: float = 5.0  # seconds averaged by the parse time counter
    rate_window: float = 30.0  # seconds of history behind the rate counters
    log_level: str = "INFO"
    json_logs: bool = True

    def __post_init__(self) -> None:
        if not self.line_prefix or " " in self.line_prefix:
            raise ConfigError("line_prefix", "must be a non-empty word without spaces")
        if self.parse_time_window <= 0:
            raise ConfigError("parse_time_window", "must be positive")
        if self.rate_window <= 0:
            raise ConfigError("rate_window", "must be positive")
        level = logging.getLevelName(self.log_level.upper())
        if not isinstance(level, int):
            raise ConfigError("log_level", f"unknown level {self.log_level!r}")
        self.log_level = self.log_level.upper()

    @property
    def stats_enabled(self) -> bool:
        return self.stats_interval > 0

    @classmethod
    def from_env(cls) -> ReaderConfig:
        """Create config from environment variables."""
        values: dict[str, Any] = {}
        for f in fields(cls):
            raw = os.environ.get(f"{ENV_PREFIX}{f.name.upper()}")
            if raw is not None:
                values[f.name] = _coerce(f.name, f.type, raw)
        return cls(**values)

    @classmethod
    def from_file(cls, path: Path | str) -> ReaderConfig:
        """Create config from the ``reader`` section of a YAML file."""
        path = Path(path)
        try:
            with open(path) as f:
                document = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(str(path), f"cannot load settings: {e}") from e

        if not isinstance(document, dict):
            raise ConfigError(str(path), "settings document must be a mapping")

        section = document.get("reader", {}) or {}
        if not isinstance(section, dict):
            raise ConfigError("reader", "section must be a mapping")

        known = {f.name: f.type for f in fields(cls)}
        unknown = sorted(set(section) - set(known))
        if unknown:
            raise ConfigError("reader", f"unknown keys: {', '.join(unknown)}")

        values = {key: _coerce(key, known[key], value) for key, value in section.items()}
        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {f.name: getattr(self, f.name) for f in fields(self)}


def _coerce(key: str, type_name: Any, value: Any) -> Any:
    """Convert a raw setting to the field's declared type."""
    # Annotations are strings under ``from __future__ import annotations``
    type_name = getattr(type_name, "__name__", type_name)
    if type_name == "bool":
        if isinstance(value, bool):
            return value
        text = str(value).strip().lower()
        if text in _TRUE_VALUES:
            return True
        if text in _FALSE_VALUES:
            return False
        raise ConfigError(key, f"expected a boolean, got {value!r}")
    if type_name == "float":
        if isinstance(value, bool):
            raise ConfigError(key, f"expected a number, got {value!r}")
        try:
            return float(value)
        except (TypeError, ValueError) as e:
            raise ConfigError(key, f"expected a number, got {value!r}") from e
    return str(value)

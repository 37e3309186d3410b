"""YAML configuration for resolver defaults.

Example file::

    resolver:
      concurrency: 2
      retries: 1
      timeout_ms: 5000
      use_cache: true
      registry: https://registry.npmmirror.com/
      npm_command: /usr/local/bin/npm

Values passed directly to ``resolve_version`` still take precedence; the
config only supplies defaults.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields
from typing import Any, Dict, Optional

import yaml

from constants import Constants
from common.errors import InvalidArgumentError

logger = logging.getLogger(__name__)


@dataclass
class ResolverConfig:
    """Defaults for ``resolve_version`` loaded from a config file."""

    concurrency: int = Constants.DEFAULT_CONCURRENCY
    retries: Optional[int] = None
    timeout_ms: Optional[int] = None
    use_cache: bool = True
    registry: Optional[str] = None
    npm_command: Optional[str] = None

    def as_options(self) -> Dict[str, Any]:
        """Keyword arguments for ``resolve_version`` / ``latest_version``."""
        return {
            "concurrency": self.concurrency,
            "retries": self.retries,
            "timeout_ms": self.timeout_ms,
            "use_cache": self.use_cache,
            "registry_url": self.registry,
            "npm_command": self.npm_command,
        }


_INT_FIELDS = {"concurrency", "retries", "timeout_ms"}
_STR_FIELDS = {"registry", "npm_command"}


def load_config(config_path: Optional[str]) -> ResolverConfig:
    """Load resolver defaults from a YAML file.

    Args:
        config_path: Path to the YAML file. None or a missing file yields
            the built-in defaults.

    Returns:
        ResolverConfig populated from the file's ``resolver`` section (or
        from the top level when there is no such section).

    Raises:
        InvalidArgumentError: If the file cannot be parsed or a value has
            the wrong type.
    """
    if not config_path:
        return ResolverConfig()

    if not os.path.isfile(config_path):
        logger.warning("Config file not found: %s", config_path)
        return ResolverConfig()

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise InvalidArgumentError(f"Failed to parse config {config_path}: {exc}") from exc

    if data is None:
        return ResolverConfig()
    if not isinstance(data, dict):
        raise InvalidArgumentError(f"Config {config_path} must contain a mapping")

    section = data.get("resolver", data)
    if not isinstance(section, dict):
        raise InvalidArgumentError(f"'resolver' section of {config_path} must be a mapping")

    known = {f.name for f in fields(ResolverConfig)}
    values: Dict[str, Any] = {}
    for key, value in section.items():
        if key not in known:
            logger.warning("Ignoring unknown config key: %s", key)
            continue
        values[key] = _coerce(key, value)
    return ResolverConfig(**values)


def _coerce(key: str, value: Any) -> Any:
    if value is None:
        if key in ("concurrency", "use_cache"):
            raise InvalidArgumentError(f"Config value '{key}' cannot be empty")
        return None
    if key in _INT_FIELDS:
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidArgumentError(f"Config value '{key}' must be an integer, got {value!r}")
        return value
    if key == "use_cache":
        if not isinstance(value, bool):
            raise InvalidArgumentError(f"Config value 'use_cache' must be a boolean, got {value!r}")
        return value
    if key in _STR_FIELDS:
        return str(value)
    return value

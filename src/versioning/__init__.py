"""Effective version resolution for npm packages.

The package only logs through module loggers and never installs handlers.
Applications that want the resolver's records call :func:`configure_logging`
once at startup; the level falls back to ``LATESTVER_LOG_LEVEL``::

    from versioning import configure_logging, latest_version

    configure_logging("DEBUG")
    latest_version("vue", "legacy")   # "2.7.16"
"""

from common.logging_utils import configure_logging
from .cache import RESULT_CACHE, TTLCache
from .models import PackageMetadata, ResolutionRequest
from .resolve import latest_version, resolve_version
from .selector import select_version

__all__ = [
    "PackageMetadata",
    "RESULT_CACHE",
    "ResolutionRequest",
    "TTLCache",
    "configure_logging",
    "latest_version",
    "resolve_version",
    "select_version",
]

"""Exception hierarchy for version resolution.

Per-strategy failures (:class:`ExternalToolError`, :class:`InvalidMetadataError`,
:class:`LookupTimeoutError`) are absorbed by the race and retry layers. Callers
of the public entry point only ever see :class:`InvalidArgumentError` (bad input,
raised before any lookup) or :class:`ResolutionError`.
"""

from __future__ import annotations

from typing import Optional


class LatestVersionError(Exception):
    """Base class for every error raised by this project."""


class InvalidArgumentError(LatestVersionError, ValueError):
    """Caller supplied an unusable argument; never retried."""


class ExternalToolError(LatestVersionError):
    """An external lookup (npm subprocess or registry HTTP call) failed."""

    def __init__(
        self,
        message: str,
        output: Optional[str] = None,
        returncode: Optional[int] = None,
    ):
        super().__init__(message)
        self.output = output
        self.returncode = returncode


class InvalidMetadataError(LatestVersionError):
    """Package metadata was malformed or structurally incomplete."""


class LookupTimeoutError(LatestVersionError, TimeoutError):
    """A single lookup attempt exceeded its deadline."""

    def __init__(self, timeout_ms: int):
        super().__init__(f"Lookup timed out after {timeout_ms} ms")
        self.timeout_ms = timeout_ms


class NoStrategiesError(LatestVersionError):
    """A race was started without any operations."""


class ResolutionError(LatestVersionError):
    """Every lookup attempt failed; carries the last underlying cause."""

    def __init__(self, package_name: str, cause: Optional[BaseException] = None):
        message = f"Unable to resolve a version for '{package_name}'"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
        self.package_name = package_name
        self.cause = cause

"""Data models for package metadata and resolution requests."""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from constants import Constants
from common.errors import InvalidArgumentError, InvalidMetadataError


@dataclass(frozen=True)
class PackageMetadata:
    """Versions and dist-tags of one package, in registry order."""
    versions: Tuple[str, ...]
    dist_tags: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_document(cls, document: Any) -> "PackageMetadata":
        """Build from a decoded ``npm show --json`` output or registry packument.

        ``versions`` may be a list (CLI output), a mapping keyed by version
        (packument; insertion order is registry order) or a bare string (npm
        collapses single-element arrays). ``dist-tags`` is optional.

        Raises:
            InvalidMetadataError: If the document is not shaped like package metadata.
        """
        if not isinstance(document, Mapping):
            raise InvalidMetadataError("Package metadata must be a JSON object")

        raw_versions = document.get("versions")
        if isinstance(raw_versions, str):
            versions: Tuple[str, ...] = (raw_versions,)
        elif isinstance(raw_versions, Mapping):
            versions = tuple(raw_versions.keys())
        elif isinstance(raw_versions, Sequence):
            versions = tuple(raw_versions)
        else:
            raise InvalidMetadataError("Package metadata has no 'versions' list")
        if not all(isinstance(v, str) for v in versions):
            raise InvalidMetadataError("Package metadata 'versions' must contain strings")

        raw_tags = document.get("dist-tags")
        if raw_tags is None:
            raw_tags = {}
        if not isinstance(raw_tags, Mapping):
            raise InvalidMetadataError("Package metadata 'dist-tags' must be an object")
        dist_tags = {str(k): v for k, v in raw_tags.items() if isinstance(v, str)}

        return cls(versions=versions, dist_tags=dist_tags)

    @classmethod
    def from_json(cls, text: str) -> "PackageMetadata":
        """Parse raw JSON text; decode failures become InvalidMetadataError."""
        try:
            document = json.loads(text)
        except (TypeError, ValueError) as exc:
            raise InvalidMetadataError(f"Package metadata is not valid JSON: {exc}") from exc
        return cls.from_document(document)


@dataclass(frozen=True)
class ResolutionRequest:
    """Validated input of one resolve call."""
    package_name: str
    selector: str = Constants.DEFAULT_SELECTOR
    concurrency: int = Constants.DEFAULT_CONCURRENCY
    retries: int = Constants.DEFAULT_CONCURRENCY
    timeout_ms: Optional[int] = None
    use_cache: bool = True
    cwd: Optional[str] = None
    env: Optional[Dict[str, str]] = None

    def __post_init__(self):
        if not isinstance(self.package_name, str) or not self.package_name.strip():
            raise InvalidArgumentError("Package name must be a non-empty string")
        if not isinstance(self.selector, str) or not self.selector:
            raise InvalidArgumentError("Version selector must be a non-empty string")
        if not _is_int(self.concurrency) or self.concurrency < 1:
            raise InvalidArgumentError(f"concurrency must be an integer >= 1, got {self.concurrency!r}")
        if not _is_int(self.retries) or self.retries < 0:
            raise InvalidArgumentError(f"retries must be an integer >= 0, got {self.retries!r}")
        if self.timeout_ms is not None and (not _is_int(self.timeout_ms) or self.timeout_ms <= 0):
            raise InvalidArgumentError(f"timeout_ms must be a positive integer, got {self.timeout_ms!r}")

    @property
    def cache_key(self) -> str:
        return f"{self.package_name}@{self.selector}"


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)

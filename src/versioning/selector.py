"""Pick the effective version out of a package's metadata."""

from __future__ import annotations

from typing import Any, Union

from constants import Constants
from common.errors import InvalidMetadataError
from .models import PackageMetadata


def select_version(
    metadata: Union[PackageMetadata, Any],
    selector: str = Constants.DEFAULT_SELECTOR,
) -> str:
    """Return the version ``selector`` refers to.

    Resolution order:
      1. a dist-tag named ``selector`` wins outright, even when the tag looks
         like a version prefix ("2.0");
      2. unless the selector is "latest", the newest version string starting
         with ``selector`` (registries list oldest first, so scan backwards);
      3. the last listed version.

    Args:
        metadata: PackageMetadata, or a decoded metadata document.
        selector: Dist-tag, exact version or version prefix.

    Raises:
        InvalidMetadataError: If no version can be produced.
    """
    if not isinstance(metadata, PackageMetadata):
        metadata = PackageMetadata.from_document(metadata)
    selector = selector or Constants.DEFAULT_SELECTOR

    tagged = metadata.dist_tags.get(selector)
    if tagged:
        return tagged

    versions = metadata.versions
    if selector != Constants.DEFAULT_SELECTOR:
        for candidate in reversed(versions):
            if candidate.startswith(selector):
                return candidate

    if not versions:
        raise InvalidMetadataError(f"No versions available to satisfy '{selector}'")
    return versions[-1]

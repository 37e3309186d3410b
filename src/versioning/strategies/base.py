"""Base class for package metadata lookup strategies."""

from __future__ import annotations

from abc import ABC, abstractmethod

from constants import LookupSources


class LookupStrategy(ABC):
    """One independent way of obtaining the effective version of a package.

    A strategy holds configuration only, so the same instance can be
    awaited many times concurrently. ``lookup`` returns the selected version
    string or raises a ``LatestVersionError`` subclass.
    """

    @property
    @abstractmethod
    def source(self) -> LookupSources:
        """Return the lookup source this strategy implements."""

    @property
    def name(self) -> str:
        return self.source.value

    @abstractmethod
    async def lookup(self, package_name: str, selector: str) -> str:
        """Fetch metadata for ``package_name`` and select ``selector`` from it."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"

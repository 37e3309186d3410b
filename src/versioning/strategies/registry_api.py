"""Lookup strategy talking to the registry HTTP API directly."""

from __future__ import annotations

from typing import Mapping, Optional

from constants import LookupSources
from registry.npm.client import fetch_package_document, registry_url_from_env
from ..models import PackageMetadata
from ..selector import select_version
from .base import LookupStrategy


class RegistryApiStrategy(LookupStrategy):
    """Fetch the abbreviated package document over HTTP and select from it."""

    def __init__(
        self,
        registry_url: Optional[str] = None,
        env: Optional[Mapping[str, str]] = None,
        request_timeout: Optional[float] = None,
    ):
        """Initialize the strategy.

        Args:
            registry_url: Registry base URL; defaults to the environment
                (``LATESTVER_REGISTRY`` / ``npm_config_registry``) or npmjs.
            env: Environment consulted for the registry URL.
            request_timeout: HTTP timeout in seconds.
        """
        self.registry_url = registry_url or registry_url_from_env(env)
        self.request_timeout = request_timeout

    @property
    def source(self) -> LookupSources:
        return LookupSources.REGISTRY_API

    async def lookup(self, package_name: str, selector: str) -> str:
        text = await fetch_package_document(
            package_name,
            registry_url=self.registry_url,
            timeout=self.request_timeout,
        )
        return select_version(PackageMetadata.from_json(text), selector)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(registry_url={self.registry_url!r})"

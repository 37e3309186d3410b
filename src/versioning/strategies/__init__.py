"""Lookup strategies raced by the resolver."""

from typing import List, Mapping, Optional

from .base import LookupStrategy
from .npm_cli import NpmCliStrategy, NpmShowStrategy, NpmViewStrategy
from .registry_api import RegistryApiStrategy


def default_strategies(
    cwd: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
    registry_url: Optional[str] = None,
    npm_command: Optional[str] = None,
) -> List[LookupStrategy]:
    """Return the standard strategy set: npm show, npm view, registry API."""
    return [
        NpmShowStrategy(cwd=cwd, env=env, npm_command=npm_command),
        NpmViewStrategy(cwd=cwd, env=env, npm_command=npm_command),
        RegistryApiStrategy(registry_url=registry_url, env=env),
    ]


__all__ = [
    "LookupStrategy",
    "NpmCliStrategy",
    "NpmShowStrategy",
    "NpmViewStrategy",
    "RegistryApiStrategy",
    "default_strategies",
]

"""Lookup strategies backed by the local npm CLI."""

from __future__ import annotations

from typing import Dict, Mapping, Optional

from constants import LookupSources
from common.errors import ExternalToolError
from registry.npm.cli import run_npm
from ..models import PackageMetadata
from ..selector import select_version
from .base import LookupStrategy


class NpmCliStrategy(LookupStrategy):
    """Run ``npm <subcommand> <pkg> --json`` and select from its output."""

    subcommand = ""

    def __init__(
        self,
        cwd: Optional[str] = None,
        env: Optional[Mapping[str, str]] = None,
        npm_command: Optional[str] = None,
    ):
        """Initialize the strategy.

        Args:
            cwd: Working directory for npm, so its ``.npmrc`` is respected.
            env: Extra environment variables for npm.
            npm_command: Override for the npm executable.
        """
        self.cwd = cwd
        self.env: Optional[Dict[str, str]] = dict(env) if env else None
        self.npm_command = npm_command

    async def lookup(self, package_name: str, selector: str) -> str:
        returncode, output = await run_npm(
            self.subcommand,
            package_name,
            cwd=self.cwd,
            env=self.env,
            npm_command=self.npm_command,
        )
        if returncode != 0:
            raise ExternalToolError(
                f"npm {self.subcommand} {package_name} exited with status {returncode}",
                output=output,
                returncode=returncode,
            )
        return select_version(PackageMetadata.from_json(output), selector)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(cwd={self.cwd!r})"


class NpmShowStrategy(NpmCliStrategy):
    """``npm show`` variant."""

    subcommand = "show"

    @property
    def source(self) -> LookupSources:
        return LookupSources.NPM_SHOW


class NpmViewStrategy(NpmCliStrategy):
    """``npm view`` variant."""

    subcommand = "view"

    @property
    def source(self) -> LookupSources:
        return LookupSources.NPM_VIEW

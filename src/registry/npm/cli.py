"""Async runner for the local npm CLI (``npm show`` / ``npm view``).

The npm executable is resolved per call so a project-local ``.npmrc`` in
``cwd`` and registry settings in ``env`` are honored exactly as npm itself
would honor them.
"""

from __future__ import annotations

import asyncio
import logging
import os
import shutil
from typing import Dict, Mapping, Optional, Tuple

from constants import Constants
from common.errors import ExternalToolError
from common.logging_utils import extra_context, is_debug_enabled, redact, Timer

logger = logging.getLogger(__name__)

SUPPORTED_SUBCOMMANDS = ("show", "view")


def npm_executable(npm_command: Optional[str] = None, env: Optional[Mapping[str, str]] = None) -> str:
    """Return the npm executable to spawn.

    Precedence: explicit ``npm_command``, then ``LATESTVER_NPM_COMMAND`` from
    ``env`` or the process environment, then ``Constants.NPM_COMMAND``. Bare
    names are resolved on PATH (``npm.cmd`` on Windows).
    """
    command = npm_command
    if not command and env:
        command = env.get(Constants.ENV_NPM_COMMAND)
    if not command:
        command = os.environ.get(Constants.ENV_NPM_COMMAND) or Constants.NPM_COMMAND
    return shutil.which(command) or command


def build_env(env: Optional[Mapping[str, str]]) -> Optional[Dict[str, str]]:
    """Overlay caller-supplied variables on the inherited environment."""
    if not env:
        return None
    merged = dict(os.environ)
    merged.update({str(k): str(v) for k, v in env.items()})
    return merged


async def run_npm(
    subcommand: str,
    package_name: str,
    *,
    cwd: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
    npm_command: Optional[str] = None,
) -> Tuple[int, str]:
    """Run ``npm <subcommand> <package> --json`` and capture its output.

    Args:
        subcommand: Either "show" or "view".
        package_name: Package to query.
        cwd: Working directory for npm (its ``.npmrc`` applies).
        env: Extra environment variables layered over the current ones.
        npm_command: Override for the npm executable.

    Returns:
        Tuple of (returncode, output). Output is stdout on success and
        stderr (falling back to stdout) on failure.

    Raises:
        ExternalToolError: If npm cannot be started.
    """
    if subcommand not in SUPPORTED_SUBCOMMANDS:
        raise ValueError(f"Unsupported npm subcommand: {subcommand}")

    command = [npm_executable(npm_command, env), subcommand, package_name, "--json"]
    if is_debug_enabled(logger):
        logger.debug(
            "Starting npm",
            extra=extra_context(
                event="subprocess_start",
                component="npm_cli",
                action=subcommand,
                package_name=package_name,
                cwd=cwd,
            ),
        )

    with Timer() as t:
        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=cwd,
                env=build_env(env),
            )
        except OSError as exc:
            raise ExternalToolError(f"Unable to start {command[0]}: {exc}") from exc

        try:
            stdout, stderr = await process.communicate()
        except asyncio.CancelledError:
            await _terminate(process)
            raise

    out_text = stdout.decode("utf-8", errors="replace")
    err_text = stderr.decode("utf-8", errors="replace")
    returncode = process.returncode if process.returncode is not None else -1

    if is_debug_enabled(logger):
        logger.debug(
            "npm exited",
            extra=extra_context(
                event="subprocess_exit",
                component="npm_cli",
                action=subcommand,
                package_name=package_name,
                returncode=returncode,
                duration_ms=t.duration_ms(),
            ),
        )

    if returncode != 0:
        return returncode, redact(err_text.strip() or out_text)
    return returncode, out_text


async def _terminate(process: asyncio.subprocess.Process) -> None:
    """Kill an abandoned npm process and reap it; it may already have exited.

    The reap must finish before the caller re-raises so the subprocess
    transport is closed while its event loop is still running. Further
    cancellations arriving meanwhile are absorbed; the caller re-raises the
    original one.
    """
    if process.returncode is not None:
        return
    try:
        process.kill()
    except ProcessLookupError:
        pass
    reaper = asyncio.ensure_future(process.wait())
    while not reaper.done():
        try:
            await asyncio.shield(reaper)
        except asyncio.CancelledError:
            continue
    logger.debug(
        "Killed abandoned npm process",
        extra=extra_context(event="subprocess_killed", component="npm_cli", pid=process.pid),
    )

"""Public entry point: resolve the effective version of an npm package.

A call validates its input, consults the result cache, then races every
lookup strategy (``concurrency`` duplicate attempts each, optionally under a
per-attempt deadline) and retries the whole race on total failure.
"""

from __future__ import annotations

import asyncio
import logging
from typing import List, Mapping, Optional, Sequence

from constants import Constants
from common.errors import InvalidArgumentError, ResolutionError
from common.logging_utils import extra_context, is_debug_enabled, Timer
from .cache import RESULT_CACHE, TTLCache
from .models import ResolutionRequest
from .race import Operation, race_first_success, with_timeout
from .retry import retry_rounds
from .strategies import LookupStrategy, default_strategies

logger = logging.getLogger(__name__)


async def resolve_version(
    package_name: str,
    version: str = Constants.DEFAULT_SELECTOR,
    *,
    concurrency: int = Constants.DEFAULT_CONCURRENCY,
    retries: Optional[int] = None,
    timeout_ms: Optional[int] = None,
    use_cache: bool = True,
    cwd: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
    registry_url: Optional[str] = None,
    npm_command: Optional[str] = None,
    strategies: Optional[Sequence[LookupStrategy]] = None,
    cache: Optional[TTLCache] = None,
) -> str:
    """Resolve ``version`` (dist-tag, exact version or prefix) for ``package_name``.

    Args:
        package_name: npm package name, scoped names included.
        version: Selector; defaults to "latest".
        concurrency: Duplicate attempts started per strategy in each round.
        retries: Extra rounds after a fully failed one. Defaults to
            ``concurrency``.
        timeout_ms: Deadline for each individual attempt.
        use_cache: Serve from and populate the result cache.
        cwd: Working directory forwarded to npm.
        env: Environment variables forwarded to npm and used to locate the
            registry.
        registry_url: Registry base URL for the HTTP strategy.
        npm_command: Override for the npm executable.
        strategies: Replacement strategy set (defaults to npm show, npm view
            and the registry API).
        cache: Replacement cache (defaults to the process-wide one).

    Returns:
        The resolved version string.

    Raises:
        InvalidArgumentError: On bad input, before any lookup starts.
        ResolutionError: When every round failed; wraps the last cause.
    """
    request = ResolutionRequest(
        package_name=package_name,
        selector=version if version is not None else Constants.DEFAULT_SELECTOR,
        concurrency=concurrency,
        retries=concurrency if retries is None else retries,
        timeout_ms=timeout_ms,
        use_cache=use_cache,
        cwd=cwd,
        env=dict(env) if env else None,
    )
    result_cache = RESULT_CACHE if cache is None else cache

    if request.use_cache:
        cached = result_cache.get(request.cache_key)
        if cached is not None:
            logger.debug(
                "Cache hit for %s",
                request.cache_key,
                extra=extra_context(event="cache_hit", component="resolve", key=request.cache_key),
            )
            return cached
        logger.debug(
            "Cache miss for %s",
            request.cache_key,
            extra=extra_context(event="cache_miss", component="resolve", key=request.cache_key),
        )

    if strategies is None:
        strategies = default_strategies(
            cwd=request.cwd,
            env=request.env,
            registry_url=registry_url,
            npm_command=npm_command,
        )
    strategy_list = list(strategies)

    async def _round() -> str:
        return await race_first_success(_build_attempts(request, strategy_list))

    with Timer() as t:
        try:
            resolved = await retry_rounds(_round, request.retries)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            logger.warning(
                "Failed to resolve %s: %s",
                request.cache_key,
                exc,
                extra=extra_context(
                    event="resolution_failed",
                    component="resolve",
                    package_name=request.package_name,
                    error_type=type(exc).__name__,
                    duration_ms=t.duration_ms(),
                ),
            )
            raise ResolutionError(request.package_name, exc) from exc

    if request.use_cache:
        result_cache.set(request.cache_key, resolved)
    if is_debug_enabled(logger):
        logger.debug(
            "Resolved %s to %s",
            request.cache_key,
            resolved,
            extra=extra_context(
                event="resolved",
                component="resolve",
                package_name=request.package_name,
                duration_ms=t.duration_ms(),
            ),
        )
    return resolved


def latest_version(
    package_name: str,
    version: str = Constants.DEFAULT_SELECTOR,
    **options,
) -> str:
    """Blocking wrapper around :func:`resolve_version`.

    Must not be called from inside a running event loop.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        pass
    else:
        raise InvalidArgumentError(
            "latest_version() cannot run inside an event loop; await resolve_version() instead"
        )
    return asyncio.run(resolve_version(package_name, version, **options))


def _build_attempts(
    request: ResolutionRequest, strategies: Sequence[LookupStrategy]
) -> List[Operation[str]]:
    """One operation per (strategy, duplicate) pair, strategy-major order."""
    attempts: List[Operation[str]] = []
    for strategy in strategies:
        for duplicate in range(1, request.concurrency + 1):
            attempts.append(
                lambda strategy=strategy, duplicate=duplicate: _attempt(request, strategy, duplicate)
            )
    return attempts


async def _attempt(request: ResolutionRequest, strategy: LookupStrategy, duplicate: int) -> str:
    if is_debug_enabled(logger):
        logger.debug(
            "Starting %s lookup for %s",
            strategy.name,
            request.cache_key,
            extra=extra_context(
                event="strategy_attempt",
                component="resolve",
                strategy=strategy.name,
                attempt=duplicate,
            ),
        )
    return await with_timeout(
        strategy.lookup(request.package_name, request.selector),
        request.timeout_ms,
    )

"""Race concurrent lookups: first success wins, the rest are cancelled.

Operations are zero-argument callables returning awaitables so every attempt
gets a fresh coroutine. Cancellation is cooperative: abandoned tasks receive
``CancelledError`` at their next await point, and anything they still raise
afterwards is retrieved here so the event loop never reports it.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, Sequence, TypeVar

from common.errors import ExternalToolError, LookupTimeoutError, NoStrategiesError
from common.logging_utils import extra_context, is_debug_enabled

logger = logging.getLogger(__name__)

T = TypeVar("T")
Operation = Callable[[], Awaitable[T]]


async def with_timeout(operation: Awaitable[T], timeout_ms: Optional[int]) -> T:
    """Await ``operation`` under a wall-clock deadline.

    When the deadline passes first the operation is cancelled and abandoned
    (its late result, if any, is discarded) and LookupTimeoutError is raised.
    ``timeout_ms=None`` applies no deadline.
    """
    if timeout_ms is None:
        return await operation

    task = asyncio.ensure_future(operation)
    try:
        done, _ = await asyncio.wait({task}, timeout=timeout_ms / 1000)
    except asyncio.CancelledError:
        task.cancel()
        task.add_done_callback(_discard_result)
        raise

    if not done:
        task.cancel()
        task.add_done_callback(_discard_result)
        raise LookupTimeoutError(timeout_ms)
    return task.result()


async def race_first_success(operations: Sequence[Operation[T]]) -> T:
    """Start every operation and return the first successful result.

    Every task still pending when the race settles is cancelled exactly
    once. If all operations fail, the exception of the operation that
    settled last (completion order, not input order) is raised.

    Raises:
        NoStrategiesError: If ``operations`` is empty.
    """
    if not operations:
        raise NoStrategiesError("Cannot race an empty set of operations")

    settled: asyncio.Queue = asyncio.Queue()
    tasks: List[asyncio.Future] = []
    try:
        for operation in operations:
            task = asyncio.ensure_future(operation())
            task.add_done_callback(settled.put_nowait)
            tasks.append(task)

        last_error: Optional[BaseException] = None
        for position in range(1, len(tasks) + 1):
            task = await settled.get()
            if task.cancelled():
                last_error = ExternalToolError("Lookup was cancelled before it settled")
                continue
            error = task.exception()
            if error is None:
                if is_debug_enabled(logger):
                    logger.debug(
                        "Race won",
                        extra=extra_context(
                            event="race_won",
                            component="race",
                            settled=position,
                            total=len(tasks),
                        ),
                    )
                return task.result()
            last_error = error
            if is_debug_enabled(logger):
                logger.debug(
                    "Race participant failed: %s",
                    error,
                    extra=extra_context(
                        event="strategy_failure",
                        component="race",
                        settled=position,
                        total=len(tasks),
                        error_type=type(error).__name__,
                    ),
                )

        logger.debug(
            "Every race participant failed",
            extra=extra_context(event="race_exhausted", component="race", total=len(tasks)),
        )
        raise last_error
    finally:
        _abandon(tasks)


def _abandon(tasks: Sequence[asyncio.Future]) -> None:
    """Cancel unfinished tasks once and silence results nobody will read."""
    for task in tasks:
        if task.done():
            _discard_result(task)
        else:
            task.cancel()
            task.add_done_callback(_discard_result)


def _discard_result(task: asyncio.Future) -> None:
    if not task.cancelled():
        task.exception()

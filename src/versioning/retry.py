"""Re-run whole lookup rounds after total failure."""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, TypeVar

from common.errors import InvalidArgumentError, NoStrategiesError
from common.logging_utils import extra_context

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def retry_rounds(round_fn: Callable[[], Awaitable[T]], max_attempts: int) -> T:
    """Run ``round_fn`` until it succeeds or the retry budget is spent.

    Retries follow each other immediately, without backoff.

    Args:
        round_fn: Builds and awaits one complete round (a fresh race).
        max_attempts: Number of retries after the first round; 0 means a
            single round.

    Returns:
        The first successful round's result.

    Raises:
        The final round's exception, unchanged, once retries are exhausted.
        NoStrategiesError is raised at once since rerunning cannot fix it.
    """
    if max_attempts < 0:
        raise InvalidArgumentError(f"max_attempts must be >= 0, got {max_attempts}")

    remaining = max_attempts
    round_number = 1
    while True:
        try:
            return await round_fn()
        except NoStrategiesError:
            raise
        except Exception as exc:  # pylint: disable=broad-exception-caught
            if remaining <= 0:
                raise
            remaining -= 1
            logger.info(
                "Lookup round %d failed (%s); retrying, %d retries left",
                round_number,
                exc,
                remaining,
                extra=extra_context(
                    event="retry_round",
                    component="retry",
                    attempt=round_number,
                    error_type=type(exc).__name__,
                ),
            )
            round_number += 1

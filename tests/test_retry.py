"""Tests for retrying whole lookup rounds."""

import asyncio

import pytest

from common.errors import ExternalToolError, InvalidArgumentError, NoStrategiesError
from versioning.retry import retry_rounds


class _FlakyRound:
    """Round function failing a fixed number of times before succeeding."""

    def __init__(self, failures, result="1.0.0"):
        self.failures = failures
        self.result = result
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise ExternalToolError(f"round {self.calls} failed")
        return self.result


class TestRetryRounds:
    """Tests for retry_rounds."""

    def test_success_within_budget(self):
        """Two failures then a success fit into two retries."""
        round_fn = _FlakyRound(failures=2)
        assert asyncio.run(retry_rounds(round_fn, 2)) == "1.0.0"
        assert round_fn.calls == 3

    def test_budget_exhausted_propagates_final_failure(self):
        """With one retry the second failure is raised unchanged."""
        round_fn = _FlakyRound(failures=2)
        with pytest.raises(ExternalToolError, match="round 2 failed"):
            asyncio.run(retry_rounds(round_fn, 1))
        assert round_fn.calls == 2

    def test_zero_means_single_attempt(self):
        """max_attempts=0 runs exactly one round."""
        round_fn = _FlakyRound(failures=1)
        with pytest.raises(ExternalToolError, match="round 1 failed"):
            asyncio.run(retry_rounds(round_fn, 0))
        assert round_fn.calls == 1

    def test_immediate_success_runs_once(self):
        """No retries happen after a success."""
        round_fn = _FlakyRound(failures=0)
        assert asyncio.run(retry_rounds(round_fn, 5)) == "1.0.0"
        assert round_fn.calls == 1

    def test_no_strategies_is_not_retried(self):
        """Programmer errors are raised on the first round."""
        calls = []

        async def round_fn():
            calls.append(1)
            raise NoStrategiesError("nothing to race")

        with pytest.raises(NoStrategiesError):
            asyncio.run(retry_rounds(round_fn, 3))
        assert len(calls) == 1

    def test_negative_budget_rejected(self):
        """Negative retry budgets are invalid."""
        with pytest.raises(InvalidArgumentError):
            asyncio.run(retry_rounds(_FlakyRound(failures=0), -1))

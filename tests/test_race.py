"""Tests for the cancellable race and the per-attempt timeout guard."""

import asyncio
import gc

import pytest

from common.errors import ExternalToolError, LookupTimeoutError, NoStrategiesError
from versioning.race import race_first_success, with_timeout


def _pending(cancellations, key):
    """Operation that never finishes on its own and counts cancellations."""
    async def op():
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            cancellations[key] = cancellations.get(key, 0) + 1
            raise
        return "too late"
    return op


def _succeed(value, delay=0.0):
    async def op():
        await asyncio.sleep(delay)
        return value
    return op


def _fail(message, delay=0.0):
    async def op():
        await asyncio.sleep(delay)
        raise ExternalToolError(message)
    return op


class TestRaceFirstSuccess:
    """Tests for race_first_success."""

    @pytest.mark.parametrize("winner", [0, 1, 2, 3])
    def test_single_success_wins_and_others_cancelled_once(self, winner):
        """The only success is returned wherever it sits; the rest are cancelled once."""
        cancellations = {}

        async def _run():
            operations = [
                _succeed("1.2.3", delay=0.01) if i == winner else _pending(cancellations, i)
                for i in range(4)
            ]
            result = await race_first_success(operations)
            await asyncio.sleep(0.01)
            return result

        assert asyncio.run(_run()) == "1.2.3"
        assert cancellations == {i: 1 for i in range(4) if i != winner}

    def test_success_after_failures(self):
        """Failures before the first success are absorbed."""
        async def _run():
            return await race_first_success(
                [_fail("a"), _fail("b", delay=0.005), _succeed("2.0.0", delay=0.02)]
            )

        assert asyncio.run(_run()) == "2.0.0"

    def test_first_success_is_returned(self):
        """With several successes the earliest one wins."""
        async def _run():
            return await race_first_success(
                [_succeed("slow", delay=0.05), _succeed("fast", delay=0.0)]
            )

        assert asyncio.run(_run()) == "fast"

    @pytest.mark.parametrize(
        "settle_order, expected",
        [
            ((2, 0, 1), "failure 1"),
            ((1, 2, 0), "failure 0"),
            ((0, 1, 2), "failure 2"),
        ],
    )
    def test_all_fail_surfaces_last_to_settle(self, settle_order, expected):
        """The error of the operation that settled last is raised, not the last in input order."""
        async def _run():
            gates = [asyncio.Event() for _ in range(3)]

            def failing(i):
                async def op():
                    await gates[i].wait()
                    raise ExternalToolError(f"failure {i}")
                return op

            race = asyncio.ensure_future(race_first_success([failing(i) for i in range(3)]))
            for i in settle_order:
                await asyncio.sleep(0.005)
                gates[i].set()
            return await race

        with pytest.raises(ExternalToolError) as excinfo:
            asyncio.run(_run())
        assert str(excinfo.value) == expected

    def test_sole_failure_is_reraised_unchanged(self):
        """A single failing operation surfaces its own error, never None."""
        error = ExternalToolError("only one")

        async def op():
            raise error

        with pytest.raises(ExternalToolError) as excinfo:
            asyncio.run(race_first_success([op]))
        assert excinfo.value is error

    def test_empty_operations(self):
        """Racing nothing fails immediately."""
        with pytest.raises(NoStrategiesError):
            asyncio.run(race_first_success([]))

    def test_operations_start_concurrently(self):
        """Every operation is started before any of them finishes."""
        started = []

        def op(i):
            async def _op():
                started.append(i)
                await asyncio.sleep(0.01)
                if i == 2:
                    return "done"
                raise ExternalToolError(str(i))
            return _op

        async def _run():
            return await race_first_success([op(i) for i in range(3)])

        assert asyncio.run(_run()) == "done"
        assert sorted(started) == [0, 1, 2]

    def test_late_failures_are_not_reported(self):
        """Errors raised by abandoned operations never reach the loop's exception handler."""
        async def stubborn():
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                raise RuntimeError("late failure")

        async def _run():
            reported = []
            asyncio.get_running_loop().set_exception_handler(
                lambda loop, context: reported.append(context)
            )
            result = await race_first_success([_succeed("1.0.0", delay=0.01), stubborn])
            await asyncio.sleep(0.01)
            gc.collect()
            return result, reported

        result, reported = asyncio.run(_run())
        assert result == "1.0.0"
        assert reported == []

    def test_cancelling_race_cancels_operations(self):
        """Cancelling the race itself cancels every running operation."""
        cancellations = {}

        async def _run():
            race = asyncio.ensure_future(
                race_first_success([_pending(cancellations, 0), _pending(cancellations, 1)])
            )
            await asyncio.sleep(0.01)
            race.cancel()
            with pytest.raises(asyncio.CancelledError):
                await race
            await asyncio.sleep(0.01)

        asyncio.run(_run())
        assert cancellations == {0: 1, 1: 1}


class TestWithTimeout:
    """Tests for with_timeout."""

    def test_no_timeout_passes_through(self):
        """timeout_ms=None simply awaits the operation."""
        assert asyncio.run(with_timeout(_succeed("1.0.0", delay=0.01)(), None)) == "1.0.0"

    def test_fast_operation_beats_deadline(self):
        """A result arriving before the deadline is returned."""
        assert asyncio.run(with_timeout(_succeed("1.0.0")(), 1000)) == "1.0.0"

    def test_errors_propagate_unchanged(self):
        """Failures inside the deadline are not turned into timeouts."""
        with pytest.raises(ExternalToolError, match="boom"):
            asyncio.run(with_timeout(_fail("boom")(), 1000))

    def test_deadline_exceeded(self):
        """A slow operation is abandoned with LookupTimeoutError."""
        cancellations = {}

        async def _run():
            try:
                await with_timeout(_pending(cancellations, "slow")(), 20)
            finally:
                await asyncio.sleep(0.01)

        with pytest.raises(LookupTimeoutError) as excinfo:
            asyncio.run(_run())
        assert excinfo.value.timeout_ms == 20
        assert isinstance(excinfo.value, TimeoutError)
        assert cancellations == {"slow": 1}

    def test_timeouts_count_as_race_failures(self):
        """A timed-out attempt loses the race to a slower but successful one."""
        cancellations = {}

        async def _run():
            return await race_first_success(
                [
                    lambda: with_timeout(_pending(cancellations, 0)(), 10),
                    lambda: with_timeout(_succeed("3.0.0", delay=0.03)(), 1000),
                ]
            )

        assert asyncio.run(_run()) == "3.0.0"

"""
Unit Tests for SingleFlight

Tests request coalescing, failure fan-out and cancellation semantics.
"""

import asyncio

import pytest

from lingua_cache.services.single_flight import SingleFlight


@pytest.mark.unit
class TestCoalescing:

    @pytest.mark.asyncio
    async def test_concurrent_callers_share_one_computation(self):
        flight = SingleFlight()
        calls = 0
        release = asyncio.Event()

        async def compute():
            nonlocal calls
            calls += 1
            await release.wait()
            return {"value": 42}

        tasks = [asyncio.create_task(flight.run("k", compute)) for _ in range(5)]
        await asyncio.sleep(0)
        assert flight.in_flight("k")
        release.set()
        results = await asyncio.gather(*tasks)

        assert calls == 1
        assert all(value == {"value": 42} for value, _ in results)
        assert [shared for _, shared in results].count(False) == 1
        assert not flight.in_flight("k")
        assert len(flight) == 0

    @pytest.mark.asyncio
    async def test_different_keys_run_independently(self):
        flight = SingleFlight()
        started = []

        async def compute(key):
            started.append(key)
            await asyncio.sleep(0.01)
            return key

        results = await asyncio.gather(
            flight.run("a", lambda: compute("a")),
            flight.run("b", lambda: compute("b")),
        )

        assert sorted(started) == ["a", "b"]
        assert [value for value, _ in results] == ["a", "b"]

    @pytest.mark.asyncio
    async def test_sequential_calls_recompute(self):
        flight = SingleFlight()
        calls = 0

        async def compute():
            nonlocal calls
            calls += 1
            return calls

        first, _ = await flight.run("k", compute)
        second, shared = await flight.run("k", compute)

        assert (first, second) == (1, 2)
        assert shared is False


@pytest.mark.unit
class TestFailures:

    @pytest.mark.asyncio
    async def test_error_delivered_to_every_waiter(self):
        flight = SingleFlight()
        release = asyncio.Event()

        async def compute():
            await release.wait()
            raise RuntimeError("model down")

        tasks = [asyncio.create_task(flight.run("k", compute)) for _ in range(3)]
        await asyncio.sleep(0)
        release.set()
        results = await asyncio.gather(*tasks, return_exceptions=True)

        assert all(isinstance(r, RuntimeError) for r in results)
        assert not flight.in_flight("k")

    @pytest.mark.asyncio
    async def test_failure_not_remembered(self):
        flight = SingleFlight()
        outcomes = [RuntimeError("first"), "second"]

        async def compute():
            outcome = outcomes.pop(0)
            if isinstance(outcome, Exception):
                raise outcome
            return outcome

        with pytest.raises(RuntimeError):
            await flight.run("k", compute)
        value, _ = await flight.run("k", compute)

        assert value == "second"


@pytest.mark.unit
class TestCancellation:

    @pytest.mark.asyncio
    async def test_one_cancelled_waiter_does_not_cancel_the_rest(self):
        flight = SingleFlight()
        release = asyncio.Event()

        async def compute():
            await release.wait()
            return "done"

        first = asyncio.create_task(flight.run("k", compute))
        second = asyncio.create_task(flight.run("k", compute))
        await asyncio.sleep(0)

        first.cancel()
        await asyncio.sleep(0)
        release.set()

        assert await second == ("done", True)
        assert first.cancelled()

    @pytest.mark.asyncio
    async def test_last_waiter_cancelled_cancels_computation(self):
        flight = SingleFlight()
        computation_cancelled = asyncio.Event()

        async def compute():
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                computation_cancelled.set()
                raise

        waiter = asyncio.create_task(flight.run("k", compute))
        await asyncio.sleep(0)
        waiter.cancel()

        await asyncio.wait_for(computation_cancelled.wait(), timeout=1)
        await asyncio.sleep(0.01)
        assert not flight.in_flight("k")

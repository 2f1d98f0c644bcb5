"""Tests for the bounded-concurrency executor."""

import asyncio

import pytest

from common.concurrency import ConcurrencyLimiter, Outcome, n_at_a_time


class _Tracker:
    """Counts how many workers are running at once."""

    def __init__(self):
        self.active = 0
        self.peak = 0
        self.started = []

    async def work(self, item):
        self.active += 1
        self.peak = max(self.peak, self.active)
        self.started.append(item)
        try:
            # Later items finish first, to shuffle completion order.
            await asyncio.sleep(0.001 * (10 - item % 10))
            return item * 2
        finally:
            self.active -= 1


class TestNAtATime:
    """Ceiling, ordering and failure isolation."""

    def test_never_exceeds_ceiling_and_keeps_order(self):
        tracker = _Tracker()
        outcomes = asyncio.run(n_at_a_time(3, list(range(10)), tracker.work))

        assert tracker.peak <= 3
        assert tracker.peak == 3
        assert len(outcomes) == 10
        assert [o.value for o in outcomes] == [i * 2 for i in range(10)]
        assert all(o.ok for o in outcomes)

    def test_failure_does_not_cancel_others(self):
        seen = []

        async def worker(item):
            await asyncio.sleep(0)
            seen.append(item)
            if item % 2:
                raise ValueError(f"bad {item}")
            return item

        outcomes = asyncio.run(n_at_a_time(2, [0, 1, 2, 3, 4], worker))

        assert sorted(seen) == [0, 1, 2, 3, 4]
        assert [o.ok for o in outcomes] == [True, False, True, False, True]
        assert str(outcomes[1].error) == "bad 1"
        assert outcomes[4].value == 4

    def test_fail_fast_raises_first_error_and_stops(self):
        started = []

        async def worker(item):
            started.append(item)
            await asyncio.sleep(0)
            if item == 1:
                raise RuntimeError("stop")
            await asyncio.sleep(0.05)
            return item

        with pytest.raises(RuntimeError, match="stop"):
            asyncio.run(n_at_a_time(2, list(range(20)), worker, fail_fast=True))
        assert len(started) < 20

    def test_fail_fast_returns_plain_values(self):
        async def worker(item):
            await asyncio.sleep(0)
            return item + 1

        assert asyncio.run(n_at_a_time(4, [1, 2, 3], worker, fail_fast=True)) == [2, 3, 4]

    def test_empty_items(self):
        async def worker(item):
            return item

        assert asyncio.run(n_at_a_time(3, [], worker)) == []

    @pytest.mark.parametrize("bad", [0, -1])
    def test_invalid_concurrency(self, bad):
        async def worker(item):
            return item

        with pytest.raises(ValueError):
            asyncio.run(n_at_a_time(bad, [1], worker))

    def test_default_concurrency_from_cpu_count(self, monkeypatch):
        monkeypatch.setattr("os.cpu_count", lambda: 2)
        tracker = _Tracker()
        asyncio.run(n_at_a_time(None, list(range(6)), tracker.work))
        assert tracker.peak == 2


class TestConcurrencyLimiter:
    """The class wrapper."""

    def test_run_uses_ceiling(self):
        tracker = _Tracker()
        limiter = ConcurrencyLimiter(4)
        outcomes = asyncio.run(limiter.run(list(range(8)), tracker.work))
        assert tracker.peak == 4
        assert [o.value for o in outcomes] == [i * 2 for i in range(8)]

    def test_rejects_zero(self):
        with pytest.raises(ValueError):
            ConcurrencyLimiter(0)

    def test_outcome_unwrap(self):
        assert Outcome(value=3).unwrap() == 3
        with pytest.raises(KeyError):
            Outcome(error=KeyError("x")).unwrap()

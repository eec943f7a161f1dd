"""
Tests for the gc lottery.
"""

import random
from unittest.mock import AsyncMock, MagicMock

import pytest

from pysession.handlers.base import SessionHandler
from pysession.store.collector import GarbageCollector


def make_handler():
    handler = MagicMock(spec=SessionHandler)
    handler.gc = AsyncMock(return_value=3)
    return handler


class TestLottery:
    """Tests for lottery odds."""

    def test_always_hits(self):
        """Test [100, 100] always wins."""
        collector = GarbageCollector(lottery=(100, 100))
        assert all(collector.hits_lottery() for _ in range(1000))

    def test_never_hits(self):
        """Test [0, 100] never wins."""
        collector = GarbageCollector(lottery=(0, 100))
        assert not any(collector.hits_lottery() for _ in range(1000))

    @pytest.mark.parametrize("lottery", [(2, 100), (1, 4), (50, 100)])
    def test_hit_rate(self, lottery):
        """Test intermediate odds converge on numerator / denominator."""
        collector = GarbageCollector(lottery=lottery, rng=random.Random(1234))
        draws = 20000

        hits = sum(collector.hits_lottery() for _ in range(draws))

        expected = lottery[0] / lottery[1]
        assert abs(hits / draws - expected) < 0.02


class TestTrigger:
    """Tests for running sweeps."""

    @pytest.mark.asyncio
    async def test_miss_returns_none(self):
        """Test a losing draw runs nothing."""
        handler = make_handler()
        collector = GarbageCollector(lottery=(0, 100))

        assert await collector.trigger(handler) is None
        handler.gc.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_joined_sweep(self):
        """Test wait=True joins the sweep."""
        handler = make_handler()
        collector = GarbageCollector(lottery=(100, 100), lifetime=60)

        task = await collector.trigger(handler, wait=True)

        assert task.done()
        assert task.result() == 3
        handler.gc.assert_awaited_once_with(60)

    @pytest.mark.asyncio
    async def test_detached_sweep(self):
        """Test the default detaches and drain joins."""
        handler = make_handler()
        collector = GarbageCollector(lottery=(100, 100), lifetime=60)

        task = await collector.trigger(handler)
        await collector.drain()

        assert task.done()
        handler.gc.assert_awaited_once_with(60)

    @pytest.mark.asyncio
    async def test_errors_swallowed(self):
        """Test sweep failures never propagate."""
        handler = make_handler()
        handler.gc.side_effect = OSError("disk gone")
        collector = GarbageCollector(lottery=(100, 100))

        task = await collector.trigger(handler, wait=True)

        assert task.result() == 0

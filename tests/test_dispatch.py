"""Tests for the dispatch engine."""

import asyncio

import pytest

from microemitter.dispatch import DispatchResult, dispatch


def test_dispatch_calls_in_order():
    """Test entries are called in snapshot order with args and kwargs."""
    out = []
    entries = [
        lambda x, y=None: out.append(("a", x, y)),
        lambda x, y=None: out.append(("b", x, y)),
    ]

    result = dispatch(entries, (1,), {"y": 2})

    assert out == [("a", 1, 2), ("b", 1, 2)]
    assert result == DispatchResult(invoked=2)


def test_dispatch_empty():
    """Test an empty snapshot invokes nothing."""
    assert dispatch([]).invoked == 0


def test_dispatch_collects_failures_and_continues():
    """Test failures are collected in order without stopping the pass."""
    out = []
    first, second = ValueError("1"), TypeError("2")

    def raise_first():
        raise first

    def raise_second():
        raise second

    result = dispatch([raise_first, lambda: out.append("ok"), raise_second])

    assert result.invoked == 3
    assert result.failures == [first, second]
    assert out == ["ok"]


@pytest.mark.asyncio
async def test_dispatch_attaches_rejection_callback_when_capturing():
    """Test on_rejection is attached to futures only with capture_rejections."""
    loop = asyncio.get_running_loop()
    seen = []
    captured, ignored = loop.create_future(), loop.create_future()

    dispatch([lambda: captured], capture_rejections=True, on_rejection=seen.append)
    result = dispatch([lambda: ignored], capture_rejections=False, on_rejection=seen.append)

    assert result.deferred == [ignored]
    captured.set_result(None)
    ignored.set_result(None)
    await asyncio.sleep(0)

    assert seen == [captured]


@pytest.mark.asyncio
async def test_dispatch_schedules_coroutines():
    """Test coroutines returned by listeners are wrapped in tasks."""
    out = []

    async def handler():
        out.append("ran")
        return "done"

    result = dispatch([handler])
    (task,) = result.deferred
    assert isinstance(task, asyncio.Task)
    assert await task == "done"
    assert out == ["ran"]

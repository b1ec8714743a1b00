import asyncio

import pytest

from fleetplane.core.race import first_completed, with_deadline


async def _after(delay, value):
    await asyncio.sleep(delay)
    return value


async def _now(value):
    return value


@pytest.mark.asyncio
async def test_first_completed_returns_fastest():
    name, result = await first_completed(slow=_after(1, "slow"), fast=_after(0, "fast"))

    assert name == "fast"
    assert result == "fast"


@pytest.mark.asyncio
async def test_first_completed_ties_go_to_first_argument():
    name, result = await first_completed(a=_now("a"), b=_now("b"))

    assert (name, result) == ("a", "a")


@pytest.mark.asyncio
async def test_loser_is_cancelled_before_return():
    cancelled = asyncio.Event()

    async def loser():
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            cancelled.set()
            raise

    await first_completed(winner=_now(1), loser=loser())

    assert cancelled.is_set()


@pytest.mark.asyncio
async def test_winner_exception_propagates():
    async def boom():
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError, match="boom"):
        await first_completed(work=boom(), deadline=asyncio.sleep(1))


@pytest.mark.asyncio
async def test_first_completed_requires_contenders():
    with pytest.raises(ValueError):
        await first_completed()


@pytest.mark.asyncio
async def test_with_deadline_returns_result():
    assert await with_deadline(_after(0, 42), 1, lambda: TimeoutError("late")) == 42


@pytest.mark.asyncio
async def test_with_deadline_raises_built_error():
    with pytest.raises(TimeoutError, match="late"):
        await with_deadline(_after(1, 42), 0.01, lambda: TimeoutError("late"))

"""
Race primitives.

A remote call is raced against a deadline as two tasks joined by a
first-to-finish select. The losing task is always cancelled and awaited
before the race returns, so no periodic work outlives the race.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, TypeVar

T = TypeVar("T")


async def first_completed(**contenders: Awaitable[Any]) -> tuple[str, Any]:
    """
    Run every contender concurrently and settle on the first to finish.

    Args:
        contenders: Named awaitables. When several finish within the same
            loop iteration, the earliest in argument order wins.

    Returns:
        Tuple of (winner name, winner result). If the winner raised, the
        exception is re-raised here.
    """
    if not contenders:
        raise ValueError("first_completed() needs at least one contender")

    tasks = {name: asyncio.ensure_future(aw) for name, aw in contenders.items()}
    try:
        done, _ = await asyncio.wait(tasks.values(), return_when=asyncio.FIRST_COMPLETED)
    finally:
        for task in tasks.values():
            if not task.done():
                task.cancel()
        # Losers must be fully unwound before we report a winner.
        await asyncio.gather(*tasks.values(), return_exceptions=True)

    for name, task in tasks.items():
        if task in done:
            return name, task.result()

    raise RuntimeError("no contender finished")  # pragma: no cover


async def with_deadline(
    aw: Awaitable[T],
    seconds: float,
    on_timeout: Callable[[], BaseException],
) -> T:
    """
    Race an awaitable against a deadline timer.

    Raises whatever ``on_timeout()`` builds when the deadline wins. The
    awaitable is cancelled client-side only.
    """
    name, result = await first_completed(work=aw, deadline=asyncio.sleep(seconds))
    if name == "deadline":
        raise on_timeout()
    return result

"""Asyncio fan-out helpers used by the collectors."""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, List


async def gather_or_cancel(*aws: Awaitable[Any]) -> List[Any]:
    """Run awaitables concurrently and return their results in order.

    The first exception cancels every sibling that is still running; the
    siblings are awaited until they unwind before the exception is re-raised,
    so no work outlives a failed join.
    """
    if not aws:
        return []
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
    except asyncio.CancelledError:
        await _cancel_all(tasks)
        raise

    if pending:
        await _cancel_all(pending)

    # Report the earliest submitted failure for stable error messages.
    errors = [task.exception() for task in tasks if task in done and not task.cancelled()]
    first = next((error for error in errors if error is not None), None)
    if first is not None:
        raise first
    return [task.result() for task in tasks]


async def _cancel_all(tasks) -> None:  # type: ignore[no-untyped-def]
    for task in tasks:
        task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)


__all__ = ["gather_or_cancel"]

"""Tests for modpack.aio."""

from __future__ import annotations

import asyncio

import pytest

from modpack.aio import gather_or_cancel


def test_results_follow_submission_order() -> None:
    async def _value(value: int, delay: float) -> int:
        await asyncio.sleep(delay)
        return value

    async def _main() -> list:
        return await gather_or_cancel(_value(1, 0.02), _value(2, 0.0), _value(3, 0.01))

    assert asyncio.run(_main()) == [1, 2, 3]


def test_empty_gather_returns_empty_list() -> None:
    assert asyncio.run(gather_or_cancel()) == []


def test_first_error_cancels_siblings() -> None:
    cancelled = []

    async def _slow() -> None:
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            cancelled.append(True)
            raise

    async def _fail() -> None:
        await asyncio.sleep(0)
        raise ValueError("boom")

    async def _main() -> None:
        await gather_or_cancel(_slow(), _fail())

    with pytest.raises(ValueError, match="boom"):
        asyncio.run(_main())
    assert cancelled == [True]

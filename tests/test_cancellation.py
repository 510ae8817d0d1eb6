"""
Tests for CancellationToken and iterate_until_cancelled (cancellation.py).
"""

from __future__ import annotations

import asyncio
from typing import AsyncIterator, List

import pytest

from chatturn.cancellation import CancellationToken, iterate_until_cancelled


async def _numbers(count: int, closed: List[bool]) -> AsyncIterator[int]:
    try:
        for i in range(count):
            await asyncio.sleep(0)
            yield i
    finally:
        closed.append(True)


async def _stall_after_first(closed: List[bool]) -> AsyncIterator[int]:
    try:
        yield 0
        await asyncio.Event().wait()
        yield 1
    finally:
        closed.append(True)


class TestCancellationToken:
    @pytest.mark.asyncio
    async def test_cancel_is_one_shot(self):
        token = CancellationToken()
        assert not token.cancelled
        token.cancel("stopped")
        token.cancel("cleared")
        assert token.cancelled
        assert token.reason == "stopped"

    @pytest.mark.asyncio
    async def test_wait_returns_after_cancel(self):
        token = CancellationToken()
        asyncio.get_running_loop().call_soon(token.cancel)
        await asyncio.wait_for(token.wait(), timeout=1)
        assert token.reason == "cancelled"

    @pytest.mark.asyncio
    async def test_deadline(self):
        token = CancellationToken()
        token.cancel_after(0.01)
        await asyncio.wait_for(token.wait(), timeout=1)
        assert token.reason == "deadline"

    @pytest.mark.asyncio
    async def test_clear_deadline(self):
        token = CancellationToken()
        token.cancel_after(0.01)
        token.clear_deadline()
        await asyncio.sleep(0.05)
        assert not token.cancelled

    @pytest.mark.asyncio
    async def test_manual_cancel_wins_over_deadline(self):
        token = CancellationToken()
        token.cancel_after(0.01)
        token.cancel("stopped")
        await asyncio.sleep(0.05)
        assert token.reason == "stopped"


class TestIterateUntilCancelled:
    @pytest.mark.asyncio
    async def test_passes_everything_through_without_token(self):
        closed: List[bool] = []
        items = [i async for i in iterate_until_cancelled(_numbers(3, closed), None)]
        assert items == [0, 1, 2]

    @pytest.mark.asyncio
    async def test_passes_everything_through_when_not_cancelled(self):
        closed: List[bool] = []
        token = CancellationToken()
        items = [i async for i in iterate_until_cancelled(_numbers(3, closed), token)]
        assert items == [0, 1, 2]
        assert closed == [True]

    @pytest.mark.asyncio
    async def test_nothing_after_cancel(self):
        closed: List[bool] = []
        token = CancellationToken()
        items = []
        async for i in iterate_until_cancelled(_numbers(10, closed), token):
            items.append(i)
            if i == 1:
                token.cancel()
        assert items == [0, 1]
        assert closed == [True]

    @pytest.mark.asyncio
    async def test_blocked_read_abandoned(self):
        closed: List[bool] = []
        token = CancellationToken()

        async def consume() -> List[int]:
            return [i async for i in iterate_until_cancelled(_stall_after_first(closed), token)]

        task = asyncio.create_task(consume())
        await asyncio.sleep(0.02)
        token.cancel()

        assert await asyncio.wait_for(task, timeout=1) == [0]
        assert closed == [True]

    @pytest.mark.asyncio
    async def test_already_cancelled_yields_nothing(self):
        closed: List[bool] = []
        token = CancellationToken()
        token.cancel()
        items = [i async for i in iterate_until_cancelled(_numbers(3, closed), token)]
        assert items == []

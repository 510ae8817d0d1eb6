"""
Cooperative cancellation shared between the UI and an open transport.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import AsyncIterable, AsyncIterator, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CancellationToken:
    """
    One-shot cancellation flag.

    The UI calls ``cancel()``; streaming code either polls ``cancelled`` or
    awaits ``wait()``. A deadline is just a cancellation scheduled with
    ``cancel_after()``.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._timer: Optional[asyncio.TimerHandle] = None
        self.reason: Optional[str] = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: str = "cancelled") -> None:
        if self._event.is_set():
            return
        self.reason = reason
        self._event.set()
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def cancel_after(self, seconds: float) -> None:
        """Cancel automatically once ``seconds`` have elapsed."""
        if self.cancelled:
            return
        if self._timer is not None:
            self._timer.cancel()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(seconds, self.cancel, "deadline")

    def clear_deadline(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    async def wait(self) -> None:
        await self._event.wait()

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self.cancelled}, reason={self.reason!r})"


async def iterate_until_cancelled(
    source: AsyncIterable[T], token: Optional[CancellationToken]
) -> AsyncIterator[T]:
    """
    Re-yield items from ``source`` until it ends or ``token`` is cancelled.

    Each pending read is raced against the token, so a read blocked on the
    network is abandoned as soon as cancellation is requested. Nothing is
    yielded after cancellation, and ``source`` is closed on the way out.
    """
    if token is None:
        async for item in source:
            yield item
        return

    iterator = source.__aiter__()
    stopper = asyncio.ensure_future(token.wait())
    step: Optional[asyncio.Future] = None
    try:
        while not token.cancelled:
            step = asyncio.ensure_future(iterator.__anext__())
            done, _ = await asyncio.wait({step, stopper}, return_when=asyncio.FIRST_COMPLETED)
            if step not in done:
                logger.debug("Stream abandoned after cancellation (%s)", token.reason)
                break
            try:
                item = step.result()
            except StopAsyncIteration:
                break
            if token.cancelled:
                break
            yield item
    finally:
        stopper.cancel()
        # A read still in flight must finish before the source can be closed.
        if step is not None and not step.done():
            step.cancel()
            with contextlib.suppress(asyncio.CancelledError, StopAsyncIteration):
                await step
        aclose = getattr(iterator, "aclose", None)
        if aclose is not None:
            await aclose()


__all__ = ["CancellationToken", "iterate_until_cancelled"]

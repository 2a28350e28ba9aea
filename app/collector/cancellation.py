"""
Cooperative cancellation for collection runs.
"""
import asyncio
from typing import Awaitable, TypeVar

T = TypeVar("T")


class RunCancelled(Exception):
    """Raised by CancellationToken.guard when the token fires first."""


class CancellationToken:
    """
    One token is shared by every operation of a run.

    Firing it is permanent. Network awaits go through ``guard`` so that a
    fired token abandons the request instead of waiting for it.
    """

    def __init__(self):
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    async def wait(self) -> None:
        await self._event.wait()

    async def guard(self, awaitable: Awaitable[T]) -> T:
        """
        Await ``awaitable`` unless the token fires first.

        Raises:
            RunCancelled: If the token is or becomes cancelled before completion
        """
        if self.cancelled:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise RunCancelled()

        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            waiter.cancel()

        if not task.done():
            # Token fired first; abort the in-flight request
            task.cancel()
            raise RunCancelled()
        return task.result()

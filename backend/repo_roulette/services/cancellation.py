import asyncio
from typing import Awaitable, TypeVar

from .errors import RequestCancelled

T = TypeVar("T")


class CancellationToken:
    """Signals that the work started under it should be abandoned.

    ``guard`` runs an awaitable and aborts it as soon as the token is
    cancelled, raising ``RequestCancelled`` instead of returning its result.
    """

    def __init__(self):
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise RequestCancelled()

    async def guard(self, awaitable: Awaitable[T]) -> T:
        if self._event.is_set():
            # unstarted coroutine, close it so it is not reported as never awaited
            close = getattr(awaitable, "close", None)
            if close is not None:
                close()
            raise RequestCancelled()

        work = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            await asyncio.wait({work, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            # also runs when the caller itself is cancelled
            for task in (work, waiter):
                if not task.done():
                    task.cancel()
            await asyncio.gather(work, waiter, return_exceptions=True)

        if self._event.is_set():
            raise RequestCancelled()
        return work.result()

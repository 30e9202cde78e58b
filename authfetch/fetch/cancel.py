"""Run awaitables that can be aborted by a caller-supplied event."""

from __future__ import annotations

import asyncio
from typing import Awaitable, TypeVar

from authfetch.fetch.errors import FetchCancelledError

T = TypeVar("T")


async def run_cancellable(awaitable: Awaitable[T], cancel: asyncio.Event | None, what: str) -> T:
    """Await ``awaitable`` unless ``cancel`` is set first.

    When the event wins, the pending work is cancelled and FetchCancelledError
    is raised.
    """
    if cancel is None:
        return await awaitable

    task = asyncio.ensure_future(awaitable)
    if cancel.is_set():
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        raise FetchCancelledError(f"Cancelled before {what}")

    waiter = asyncio.ensure_future(cancel.wait())
    try:
        done, _ = await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
    except BaseException:
        task.cancel()
        raise
    finally:
        waiter.cancel()

    if task in done:
        return task.result()

    task.cancel()
    await asyncio.gather(task, return_exceptions=True)
    raise FetchCancelledError(f"Cancelled during {what}")

"""
Image readiness gate and export cancellation.

Rendering proceeds only once every image in scope has either loaded or failed.
Waiting never raises on a broken image, and it gives up after a timeout so one
hung request cannot stall an export forever.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Iterable, Optional, TypeVar

from .errors import ExportCancelledError

_LOG = logging.getLogger(__name__)

T = TypeVar("T")


class CancellationToken:
    """Cooperative cancel flag checked at each suspension point of an export."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise ExportCancelledError("export cancelled")

    async def guard(self, awaitable: Awaitable[T]) -> T:
        """Await `awaitable` unless the token fires first; then abandon it and raise."""
        self.raise_if_cancelled()
        work = asyncio.ensure_future(awaitable)
        stop = asyncio.ensure_future(self._event.wait())
        try:
            await asyncio.wait({work, stop}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            work.cancel()
            raise
        finally:
            if not stop.done():
                stop.cancel()
        if not work.done():
            work.cancel()
            raise ExportCancelledError("export cancelled")
        return work.result()


async def _settle(awaitable: Awaitable[Any]) -> bool:
    try:
        await awaitable
    except asyncio.CancelledError:
        raise
    except Exception as e:
        _LOG.debug("IMAGE_SETTLE_ERROR err=%s", str(e)[:200])
        return False
    return True


async def settle_all(
    waiters: Iterable[Awaitable[Any]],
    *,
    timeout_ms: int = 15000,
    token: Optional[CancellationToken] = None,
) -> int:
    """
    Join over every waiter. A waiter that raises counts as settled (the image errored);
    returns how many completed cleanly. On timeout the remaining waiters are dropped
    and rendering goes ahead with whatever has loaded.
    """
    pending = [_settle(w) for w in waiters]
    if not pending:
        return 0
    joined = asyncio.gather(*pending)
    timeout = timeout_ms / 1000.0 if timeout_ms > 0 else None
    try:
        if token is not None:
            results = await asyncio.wait_for(token.guard(joined), timeout)
        else:
            results = await asyncio.wait_for(joined, timeout)
    except asyncio.TimeoutError:
        _LOG.warning("IMAGE_SETTLE_TIMEOUT waiters=%d timeout_ms=%d", len(pending), timeout_ms)
        return 0
    loaded = sum(1 for ok in results if ok)
    if loaded < len(results):
        _LOG.info("IMAGE_SETTLE_DONE loaded=%d failed=%d", loaded, len(results) - loaded)
    return loaded

"""Bounded, ordered delivery channel between the receive loop and consumers.

The channel holds at most ``capacity`` undelivered reports.  The producer
has to obtain a slot before publishing, and a slot is given back each time
a consumer takes a report, so a slow consumer holds the receive loop back
instead of losing reports.

Closing never blocks: the end-of-stream marker bypasses the capacity limit,
and consumers see it only after every report published before it.
"""

from __future__ import annotations

import asyncio

from gpsd_client.models import Report

_END = object()


class ChannelClosed(Exception):
    """Raised by :meth:`ReportChannel.get` once the channel is drained and closed."""


class ReportChannel:
    """Read side of a session's report stream.

    Iterate with ``async for report in session.reports`` or call
    :meth:`get` until it raises :class:`ChannelClosed`.
    """

    def __init__(self, capacity: int = 1) -> None:
        if capacity < 1:
            raise ValueError(f"channel capacity must be at least 1, got {capacity}")
        self._capacity = capacity
        self._queue: asyncio.Queue = asyncio.Queue()
        self._slots = asyncio.Semaphore(capacity)
        self._closed = False

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def closed(self) -> bool:
        """True once the producer has closed the channel (reports may remain)."""
        return self._closed

    def qsize(self) -> int:
        """Number of reports waiting to be taken."""
        return self._queue.qsize() - (1 if self._closed else 0)

    async def get(self) -> Report:
        """Take the next report, waiting for one if necessary.

        Raises
        ------
        ChannelClosed
            When the channel is closed and every report has been taken.
        """
        item = await self._queue.get()
        if item is _END:
            # leave the marker for other consumers
            self._queue.put_nowait(_END)
            raise ChannelClosed("report channel closed")
        self._slots.release()
        return item

    def __aiter__(self) -> "ReportChannel":
        return self

    async def __anext__(self) -> Report:
        try:
            return await self.get()
        except ChannelClosed:
            raise StopAsyncIteration from None

    # ── producer side, used by the session's receive loop ──────────

    async def reserve(self) -> None:
        """Wait for a free slot."""
        await self._slots.acquire()

    def publish(self, report: Report) -> None:
        """Append *report*; a slot must have been reserved first."""
        self._queue.put_nowait(report)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(_END)

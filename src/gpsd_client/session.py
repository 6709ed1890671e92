"""A gpsd session over one connected byte stream.

The session owns the transport and runs a receive loop task that turns
inbound lines into reports::

    readline → strip "\\n" / "\\r" → classify → decode → ReportChannel
                                 └─ not JSON → Raw ─────┘

Lifecycle::

    OPEN → (read error | write error | close()) → CLOSING → (loop exits) → CLOSED

The first trigger records the terminal error, closes the writer and fires
the terminal signal; every later trigger is a no-op.  The receive loop
closes the report channel as its last act, so consumers iterating over
:attr:`Session.reports` always terminate.  There is no reconnection.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from typing import Any, Awaitable, Optional

from gpsd_client.channel import ReportChannel
from gpsd_client.classifier import classify, is_json
from gpsd_client.commands import StreamPolicy, encode_watch
from gpsd_client.decoder import decode
from gpsd_client.errors import (
    ConnectionLost,
    DecodeError,
    MalformedFrame,
    MissingTransport,
    SessionClosed,
    TransportError,
)
from gpsd_client.models import Raw, Report

logger = logging.getLogger(__name__)

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 2947
DEFAULT_ADDRESS = f"{DEFAULT_HOST}:{DEFAULT_PORT}"

# asyncio.StreamReader line limit; longer lines end the session
DEFAULT_LINE_LIMIT = 2**16

_STOPPED = object()


class SessionState(enum.Enum):
    """States of a session."""

    OPEN = "OPEN"
    CLOSING = "CLOSING"
    CLOSED = "CLOSED"


class Session:
    """Streams reports from gpsd and sends commands on the same connection.

    Must be created inside a running event loop; the receive loop starts
    immediately.

    Parameters
    ----------
    reader:
        Read side of the connection (``asyncio.StreamReader`` or anything
        with an async ``readline``).
    writer:
        Write side (``asyncio.StreamWriter`` or anything with ``write``,
        async ``drain``, ``close`` and async ``wait_closed``).
    channel_size:
        How many undelivered reports may be buffered before the receive
        loop waits for the consumer.
    logger:
        Destination for ``error``/``debug`` records.  Defaults to this
        module's logger, which is silent unless the application configures
        logging.
    """

    def __init__(
        self,
        reader: Any,
        writer: Any,
        *,
        channel_size: int = 1,
        logger: Optional[Any] = None,
    ) -> None:
        if reader is None or writer is None:
            raise MissingTransport("a session needs both a reader and a writer")

        self._reader = reader
        self._writer = writer
        self._log = logger if logger is not None else logging.getLogger(__name__)
        self._channel = ReportChannel(channel_size)
        self._state = SessionState.OPEN
        self._err: Optional[BaseException] = None
        self._done = asyncio.Event()
        self._write_lock = asyncio.Lock()
        self._done_waiter: Optional[asyncio.Future] = None
        self._rx_task = asyncio.get_running_loop().create_task(self._rx())

    # ── public API ──────────────────────────────────────────────────

    @property
    def reports(self) -> ReportChannel:
        """Channel of decoded reports, closed when the session ends."""
        return self._channel

    @property
    def err(self) -> Optional[BaseException]:
        """Why the session ended, or None while it is open.

        :class:`SessionClosed` after :meth:`close`, otherwise the transport
        error.  Stable once :attr:`closed` is True.
        """
        return self._err

    @property
    def closed(self) -> bool:
        """True once the terminal signal has fired."""
        return self._done.is_set()

    @property
    def state(self) -> SessionState:
        return self._state

    async def wait_done(self) -> None:
        """Wait for the terminal signal."""
        await self._done.wait()

    async def send(self, data: bytes) -> None:
        """Write *data* to gpsd as is.

        Only use this for commands; report frames received from the daemon
        are not valid commands.

        Raises
        ------
        SessionClosed, TransportError, OSError
            The session's terminal error if it has already ended, or the
            write failure that ended it.
        """
        async with self._write_lock:
            if self._err is not None:
                # fresh traceback per raise, the stored error is reused
                raise self._err.with_traceback(None)
            try:
                self._writer.write(data)
                await self._writer.drain()
            except OSError as exc:
                self._close(exc)
                raise
            self._log.debug("TX %s", data)

    async def stream(self, flags: int, device: str = "") -> None:
        """Change the watch policy, see :func:`~gpsd_client.commands.encode_watch`."""
        await self.send(encode_watch(flags, device))

    async def stream_policy(self, policy: StreamPolicy) -> None:
        await self.send(policy.encode())

    def close(self) -> None:
        """Close the session.  Calling it again does nothing."""
        self._close(SessionClosed())

    async def wait_closed(self) -> None:
        """Wait for the receive loop to exit and the transport to close."""
        await self._rx_task
        try:
            await self._writer.wait_closed()
        except OSError as exc:
            # already recorded as the terminal error
            self._log.debug("Transport closed with %s", exc)

    async def __aenter__(self) -> "Session":
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.close()
        await self.wait_closed()

    # ── termination ─────────────────────────────────────────────────

    def _close(self, err: BaseException) -> None:
        """Record *err* and shut down, unless a previous trigger already did."""
        if self._done.is_set():
            return
        self._err = err
        self._set_state(SessionState.CLOSING)
        self._done.set()
        self._writer.close()

    # ── receive loop ────────────────────────────────────────────────

    async def _rx(self) -> None:
        self._done_waiter = asyncio.ensure_future(self._done.wait())
        try:
            while not self._done.is_set():
                try:
                    line = await self._until_done(self._reader.readline())
                except (OSError, ValueError) as exc:
                    self._close(exc)
                    return
                if line is _STOPPED:
                    return
                if not line.endswith(b"\n"):
                    reason = "mid-frame" if line else "at frame boundary"
                    self._close(ConnectionLost(f"connection closed by gpsd {reason}"))
                    return

                report = self._parse(line)
                if report is None:
                    continue
                if await self._until_done(self._channel.reserve()) is _STOPPED:
                    return
                self._channel.publish(report)
        finally:
            if not self._done.is_set():
                self._close(TransportError("receive loop stopped unexpectedly"))
            self._done_waiter.cancel()
            self._set_state(SessionState.CLOSED)
            self._channel.close()

    def _parse(self, line: bytes) -> Optional[Report]:
        """Turn one line into a report, or log why it was dropped."""
        frame = line[:-1]
        if frame.endswith(b"\r"):
            frame = frame[:-1]
        if not frame:
            self._log.error("Dropped frame: %s", MalformedFrame("empty frame"))
            return None

        if not is_json(frame):
            self._log.debug("RX [RAW]")
            return Raw(frame)

        self._log.debug("RX %s", frame)
        try:
            return decode(classify(frame), frame)
        except DecodeError as exc:
            self._log.error("Unmarshal error: %s", exc)
            return None

    async def _until_done(self, aw: Awaitable) -> Any:
        """Await *aw* unless the terminal signal fires first.

        Returns ``_STOPPED`` when the signal wins; *aw* is cancelled then.
        """
        task = asyncio.ensure_future(aw)
        try:
            await asyncio.wait({task, self._done_waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            task.cancel()
            raise
        if task.done():
            return task.result()
        task.cancel()
        return _STOPPED

    def _set_state(self, new: SessionState) -> None:
        old = self._state
        self._state = new
        self._log.debug("Session state: %s → %s", old.value, new.value)


def parse_address(address: str) -> tuple[str, int]:
    """Split ``host:port`` (or ``:port``, ``host``, ``[v6]:port``)."""
    host, sep, port = address.rpartition(":")
    if not sep or "]" in port:
        host, port = address, ""
    host = host.strip("[]") or DEFAULT_HOST
    try:
        return host, int(port) if port else DEFAULT_PORT
    except ValueError as exc:
        raise ValueError(f"invalid gpsd address {address!r}") from exc


async def dial(
    address: str = DEFAULT_ADDRESS,
    *,
    limit: int = DEFAULT_LINE_LIMIT,
    **session_kwargs: Any,
) -> Session:
    """Connect to gpsd over TCP and return a running :class:`Session`.

    ``session_kwargs`` are passed to :class:`Session`.  Connection errors
    propagate; retrying is up to the caller.
    """
    host, port = parse_address(address)
    reader, writer = await asyncio.open_connection(host, port, limit=limit)
    logger.info("Connected to gpsd at %s:%d", host, port)
    return Session(reader, writer, **session_kwargs)

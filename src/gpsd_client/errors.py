"""Exception hierarchy for the gpsd client.

Fatal conditions end a session and are kept as its terminal error::

    TransportError      (ConnectionLost, or any OSError raised by the stream)
    SessionClosed       the caller closed the session

Protocol conditions are recoverable.  The receive loop logs them, drops the
frame, and keeps reading::

    ProtocolError
      ├─ MalformedFrame
      └─ DecodeError
           └─ UnknownClass
"""


class GpsdError(Exception):
    """Base for every error raised by this package."""


class TransportError(GpsdError):
    """The byte stream to the daemon failed."""


class ConnectionLost(TransportError):
    """The daemon closed the connection (EOF or truncated final line)."""


class SessionClosed(GpsdError):
    """The session was closed by the caller."""

    def __init__(self, message: str = "closed") -> None:
        super().__init__(message)


class MissingTransport(GpsdError):
    """A session was constructed without a reader or writer."""


class ProtocolError(GpsdError):
    """A single inbound frame could not be turned into a report."""


class MalformedFrame(ProtocolError):
    """The frame is empty once its line terminator is stripped."""


class DecodeError(ProtocolError):
    """The frame is not valid JSON or a field has the wrong wire type."""


class UnknownClass(DecodeError):
    def __init__(self, tag: str) -> None:
        super().__init__(f"unknown class {tag!r}")
        self.tag = tag

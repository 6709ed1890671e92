"""Streaming client for the gpsd JSON protocol.

Typical use::

    session = await gpsd_client.dial("localhost:2947")
    await session.stream(gpsd_client.WATCH_ENABLE | gpsd_client.WATCH_JSON)
    async for report in session.reports:
        ...
    print(session.err)
"""

import logging

from gpsd_client.channel import ChannelClosed, ReportChannel
from gpsd_client.classifier import classify
from gpsd_client.commands import (
    WATCH_DEVICE,
    WATCH_DISABLE,
    WATCH_ENABLE,
    WATCH_JSON,
    WATCH_NMEA,
    WATCH_PPS,
    WATCH_RARE,
    WATCH_RAW,
    WATCH_SCALED,
    WATCH_SPLIT24,
    WATCH_TIMING,
    RawLevel,
    StreamPolicy,
    WatchFlag,
    encode_watch,
)
from gpsd_client.decoder import KNOWN_CLASSES, decode
from gpsd_client.errors import (
    ConnectionLost,
    DecodeError,
    GpsdError,
    MalformedFrame,
    MissingTransport,
    ProtocolError,
    SessionClosed,
    TransportError,
    UnknownClass,
)
from gpsd_client.models import (
    ATT,
    DEVICE,
    DEVICES,
    ERROR,
    GST,
    OSC,
    POLL,
    PPS,
    SKY,
    TOFF,
    TPV,
    VERSION,
    WATCH,
    Activated,
    Raw,
    Report,
    Satellite,
)
from gpsd_client.session import DEFAULT_ADDRESS, Session, SessionState, dial

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())

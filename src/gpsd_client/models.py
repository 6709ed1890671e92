"""Dataclass models for gpsd reports.

Every report is a frozen dataclass whose ``class_`` field mirrors the wire
``class`` attribute.  Numbers are floats throughout (gpsd sends every
numeric attribute as a JSON number), timestamps are timezone-aware
``datetime`` objects, and sequences are tuples so a published report can
never be mutated.

Attributes missing from a frame decode to ``None`` (or ``()`` for
sequences).  Field names follow the wire attribute names; the few that are
not valid Python identifiers carry a ``wire`` entry in their metadata.

See https://gpsd.gitlab.io/gpsd/gpsd_json.html for the meaning of each
attribute.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Union


def _wire(name: str, **kwargs):
    return field(metadata={"wire": name}, **kwargs)


def _class_field(name: str):
    return _wire("class", default=name)


class Report:
    """Base for every decoded report."""

    __slots__ = ()

    @property
    def report_class(self) -> str:
        """The report discriminant, e.g. ``"TPV"``."""
        return self.class_


@dataclass(frozen=True)
class Activated:
    """A device activation value.

    gpsd sends ``activated`` as an ISO 8601 string inside a ``DEVICES``
    list and as a number in some standalone ``DEVICE`` reports.  Exactly
    one of ``number`` and ``text`` is set.
    """

    number: Optional[float] = None
    text: Optional[str] = None

    @property
    def is_number(self) -> bool:
        return self.number is not None

    @property
    def value(self) -> Union[float, str, None]:
        return self.number if self.number is not None else self.text


# ── position, sky and error reports ─────────────────────────────────


@dataclass(frozen=True)
class TPV(Report):
    """Time-position-velocity fix."""

    class_: str = _class_field("TPV")
    device: Optional[str] = None
    status: Optional[float] = None
    mode: Optional[float] = None
    time: Optional[datetime] = None
    ept: Optional[float] = None
    lat: Optional[float] = None
    lon: Optional[float] = None
    alt: Optional[float] = None
    eph: Optional[float] = None
    epx: Optional[float] = None
    epy: Optional[float] = None
    epv: Optional[float] = None
    track: Optional[float] = None
    speed: Optional[float] = None
    climb: Optional[float] = None
    epd: Optional[float] = None
    eps: Optional[float] = None
    epc: Optional[float] = None


@dataclass(frozen=True)
class Satellite:
    """One entry of a :class:`SKY` report."""

    prn: Optional[float] = _wire("PRN", default=None)
    az: Optional[float] = None
    el: Optional[float] = None
    ss: Optional[float] = None
    used: Optional[bool] = None


@dataclass(frozen=True)
class SKY(Report):
    """Satellite sky view with dilution-of-precision figures."""

    class_: str = _class_field("SKY")
    device: Optional[str] = None
    time: Optional[datetime] = None
    xdop: Optional[float] = None
    ydop: Optional[float] = None
    vdop: Optional[float] = None
    tdop: Optional[float] = None
    hdop: Optional[float] = None
    pdop: Optional[float] = None
    gdop: Optional[float] = None
    satellites: tuple[Satellite, ...] = ()


@dataclass(frozen=True)
class GST(Report):
    """Pseudorange noise (error estimate) report."""

    class_: str = _class_field("GST")
    device: Optional[str] = None
    time: Optional[datetime] = None
    rms: Optional[float] = None
    major: Optional[float] = None
    minor: Optional[float] = None
    orient: Optional[float] = None
    lat: Optional[float] = None
    lon: Optional[float] = None
    alt: Optional[float] = None


@dataclass(frozen=True)
class ATT(Report):
    """Vehicle attitude from a compass or gyroscope."""

    class_: str = _class_field("ATT")
    device: Optional[str] = None
    time: Optional[datetime] = None
    heading: Optional[float] = None
    mag_st: Optional[str] = None
    pitch: Optional[float] = None
    pitch_st: Optional[str] = None
    yaw: Optional[float] = None
    yaw_st: Optional[str] = None
    roll: Optional[float] = None
    roll_st: Optional[str] = None
    dip: Optional[float] = None
    mag_len: Optional[float] = None
    mag_x: Optional[float] = None
    mag_y: Optional[float] = None
    mag_z: Optional[float] = None
    acc_len: Optional[float] = None
    acc_x: Optional[float] = None
    acc_y: Optional[float] = None
    acc_z: Optional[float] = None
    gyro_x: Optional[float] = None
    gyro_y: Optional[float] = None
    depth: Optional[float] = None
    temp: Optional[float] = None


# ── session and device reports ─────────────────────────────────────


@dataclass(frozen=True)
class VERSION(Report):
    """Sent by the daemon right after a client connects."""

    class_: str = _class_field("VERSION")
    release: Optional[str] = None
    rev: Optional[str] = None
    proto_major: Optional[float] = None
    proto_minor: Optional[float] = None
    remote: Optional[str] = None


@dataclass(frozen=True)
class DEVICE(Report):
    """A single device descriptor."""

    class_: str = _class_field("DEVICE")
    activated: Optional[Activated] = None
    path: Optional[str] = None
    flags: Optional[float] = None
    driver: Optional[str] = None
    subtype: Optional[str] = None
    bps: Optional[float] = None
    parity: Optional[str] = None
    stopbits: Optional[float] = None
    native: Optional[float] = None
    cycle: Optional[float] = None
    mincycle: Optional[float] = None


@dataclass(frozen=True)
class DEVICES(Report):
    """Snapshot of every device the daemon knows about."""

    class_: str = _class_field("DEVICES")
    devices: tuple[DEVICE, ...] = ()
    remote: Optional[str] = None


@dataclass(frozen=True)
class WATCH(Report):
    """Echo of the watch policy currently in effect."""

    class_: str = _class_field("WATCH")
    enable: Optional[bool] = None
    json: Optional[bool] = None
    nmea: Optional[bool] = None
    raw: Optional[float] = None
    scaled: Optional[bool] = None
    timing: Optional[bool] = None
    split24: Optional[bool] = None
    pps: Optional[bool] = None
    device: Optional[str] = None
    remote: Optional[str] = None


@dataclass(frozen=True)
class POLL(Report):
    """Answer to ``?POLL``: the latest fix, sky and error summaries."""

    class_: str = _class_field("POLL")
    time: Optional[datetime] = None
    active: Optional[float] = None
    tpv: tuple[TPV, ...] = ()
    sky: tuple[SKY, ...] = ()
    gst: tuple[GST, ...] = ()


# ── timing reports ──────────────────────────────────────────────────


@dataclass(frozen=True)
class TOFF(Report):
    """Offset between the GPS time and the local clock."""

    class_: str = _class_field("TOFF")
    device: Optional[str] = None
    real_sec: Optional[float] = None
    real_nsec: Optional[float] = None
    clock_sec: Optional[float] = None
    clock_nsec: Optional[float] = None


@dataclass(frozen=True)
class PPS(Report):
    """Pulse-per-second sample."""

    class_: str = _class_field("PPS")
    device: Optional[str] = None
    real_sec: Optional[float] = None
    real_nsec: Optional[float] = None
    clock_sec: Optional[float] = None
    clock_nsec: Optional[float] = None
    precision: Optional[float] = None


@dataclass(frozen=True)
class OSC(Report):
    """Status of a GPS-disciplined oscillator."""

    class_: str = _class_field("OSC")
    device: Optional[str] = None
    running: Optional[bool] = None
    reference: Optional[bool] = None
    disciplined: Optional[bool] = None
    delta: Optional[float] = None


@dataclass(frozen=True)
class ERROR(Report):
    """Error notification sent by the daemon, e.g. for a bad command."""

    class_: str = _class_field("ERROR")
    message: Optional[str] = None


@dataclass(frozen=True)
class Raw(Report):
    """A non-JSON line (NMEA sentences, hex dumps) passed through untouched."""

    data: bytes = b""

    @property
    def report_class(self) -> str:
        return "RAW"

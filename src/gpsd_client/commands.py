"""Encoding of the ``?WATCH`` stream-policy command.

Callers either OR :class:`WatchFlag` bits together and pass them to
:func:`encode_watch`, or describe the policy with a :class:`StreamPolicy`
and call :meth:`StreamPolicy.encode`.  Both produce the same bytes::

    encode_watch(WatchFlag.ENABLE | WatchFlag.JSON)
    → b'?WATCH={"enable":true,"json":true}'

Keys are emitted in flag-bit order.  ``DISABLE`` is tested before
``ENABLE`` and wins when both are set.  The device path is only sent when
enabling with the ``DEVICE`` bit.

Only ``?WATCH`` is encoded here.  Other daemon commands (``?POLL;``,
``?DEVICES;``...) are sent verbatim with ``Session.send``.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional

import orjson


class WatchFlag(enum.IntFlag):
    """Stream-policy bits, combined with ``|``."""

    ENABLE = 0x0001
    DISABLE = 0x0002
    JSON = 0x0010
    NMEA = 0x0020
    RARE = 0x0040  # raw level 1: hex dumps
    RAW = 0x0080  # raw level 2: binary packets
    SCALED = 0x0100
    TIMING = 0x0200
    DEVICE = 0x0800
    SPLIT24 = 0x1000
    PPS = 0x2000


WATCH_ENABLE = WatchFlag.ENABLE
WATCH_DISABLE = WatchFlag.DISABLE
WATCH_JSON = WatchFlag.JSON
WATCH_NMEA = WatchFlag.NMEA
WATCH_RARE = WatchFlag.RARE
WATCH_RAW = WatchFlag.RAW
WATCH_SCALED = WatchFlag.SCALED
WATCH_TIMING = WatchFlag.TIMING
WATCH_DEVICE = WatchFlag.DEVICE
WATCH_SPLIT24 = WatchFlag.SPLIT24
WATCH_PPS = WatchFlag.PPS

# (flag, key) pairs whose value is the branch's boolean; raw is handled apart
_BOOL_KEYS_HEAD = ((WatchFlag.JSON, "json"), (WatchFlag.NMEA, "nmea"))
_BOOL_KEYS_TAIL = (
    (WatchFlag.SCALED, "scaled"),
    (WatchFlag.TIMING, "timing"),  # gpsd's WATCH attribute is "timing", not "scaled"
    (WatchFlag.SPLIT24, "split24"),
    (WatchFlag.PPS, "pps"),
)


def encode_watch(flags: int, device: str = "") -> bytes:
    """Build the ``?WATCH={...}`` command for *flags*.

    Parameters
    ----------
    flags:
        Bitwise OR of :class:`WatchFlag` values.
    device:
        Device path, sent as ``"device"`` only when enabling with the
        ``DEVICE`` bit set.  Quoted by JSON string rules.

    Notes
    -----
    ``RARE`` and ``RAW`` both map to the ``raw`` key (1 and 2).  When both
    bits are set both keys are written, ``RAW`` last, so the daemon's
    last-key-wins parsing ends up with ``"raw":2``.  Set at most one.
    """
    flags = WatchFlag(flags)
    enabling = not flags & WatchFlag.DISABLE
    value = "true" if enabling else "false"

    parts = [f'"enable":{value}']
    for bit, key in _BOOL_KEYS_HEAD:
        if flags & bit:
            parts.append(f'"{key}":{value}')
    if flags & WatchFlag.RARE:
        parts.append('"raw":1')
    if flags & WatchFlag.RAW:
        parts.append('"raw":2')
    for bit, key in _BOOL_KEYS_TAIL:
        if flags & bit:
            parts.append(f'"{key}":{value}')
    if enabling and flags & WatchFlag.DEVICE:
        parts.append('"device":' + orjson.dumps(device).decode())

    return ("?WATCH={" + ",".join(parts) + "}").encode()


class RawLevel(enum.IntEnum):
    """Raw-mode level requested from the daemon."""

    OFF = 0
    HEX = 1
    RAW = 2


@dataclass
class StreamPolicy:
    """A stream-policy request, consumed once by :meth:`encode`.

    ``device`` scopes the watch to one device path when set.
    """

    enable: bool = True
    json: bool = False
    nmea: bool = False
    raw: RawLevel = RawLevel.OFF
    scaled: bool = False
    timing: bool = False
    split24: bool = False
    pps: bool = False
    device: Optional[str] = None

    def flags(self) -> WatchFlag:
        """Translate the policy into :class:`WatchFlag` bits."""
        flags = WatchFlag.ENABLE if self.enable else WatchFlag.DISABLE
        for wanted, bit in (
            (self.json, WatchFlag.JSON),
            (self.nmea, WatchFlag.NMEA),
            (self.raw == RawLevel.HEX, WatchFlag.RARE),
            (self.raw == RawLevel.RAW, WatchFlag.RAW),
            (self.scaled, WatchFlag.SCALED),
            (self.timing, WatchFlag.TIMING),
            (self.split24, WatchFlag.SPLIT24),
            (self.pps, WatchFlag.PPS),
            (bool(self.device), WatchFlag.DEVICE),
        ):
            if wanted:
                flags |= bit
        return flags

    def encode(self) -> bytes:
        return encode_watch(self.flags(), self.device or "")

    @classmethod
    def from_flags(cls, flags: int, device: str = "") -> "StreamPolicy":
        """Inverse of :meth:`flags`.  ``RAW`` wins over ``RARE``."""
        flags = WatchFlag(flags)
        if flags & WatchFlag.RAW:
            raw = RawLevel.RAW
        elif flags & WatchFlag.RARE:
            raw = RawLevel.HEX
        else:
            raw = RawLevel.OFF
        return cls(
            enable=not flags & WatchFlag.DISABLE,
            json=bool(flags & WatchFlag.JSON),
            nmea=bool(flags & WatchFlag.NMEA),
            raw=raw,
            scaled=bool(flags & WatchFlag.SCALED),
            timing=bool(flags & WatchFlag.TIMING),
            split24=bool(flags & WatchFlag.SPLIT24),
            pps=bool(flags & WatchFlag.PPS),
            device=device if flags & WatchFlag.DEVICE else None,
        )

"""Cheap pre-decode routing of inbound frames.

A frame is routed by its ``class`` attribute before any JSON parsing
happens, so the decoder knows which report type to build::

    frame bytes
      │
      ├─ does not start with '{'   → passthrough (RAW)
      └─ starts with '{'           → classify() → tag → decoder

:func:`classify` is a single forward scan over the literal key
``"class":"``.  It never raises; a frame without the key yields ``""``.
"""

from __future__ import annotations

_KEY = b'"class":"'
_WHITESPACE = frozenset(b" \r\n\t")
_OBJECT_START = ord("{")


def is_json(frame: bytes) -> bool:
    """Return True when *frame* begins with the JSON object marker."""
    return bool(frame) and frame[0] == _OBJECT_START


def classify(frame: bytes) -> str:
    """Extract the value of the ``class`` attribute from *frame*.

    Whitespace before or between the bytes of the key is skipped, so
    ``{ "class" : "TPV"}`` and ``{"class":"TPV"}`` classify the same.  The
    key does not have to be the first attribute.  Once the key has matched,
    the value runs up to the next ``"``; when there is none the frame is
    truncated and classification fails.

    Returns
    -------
    str
        The class name, or ``""`` when it cannot be found.
    """
    matched = 0
    for i, byte in enumerate(frame):
        if byte in _WHITESPACE:
            continue
        if byte != _KEY[matched]:
            # the mismatching byte is not retested
            matched = 0
            continue
        matched += 1
        if matched == len(_KEY):
            end = frame.find(b'"', i + 1)
            if end < 0:
                return ""
            return frame[i + 1:end].decode("utf-8", errors="replace")
    return ""

"""Decode classified JSON frames into typed reports.

Dispatch is a fixed table from the ``class`` tag to a report dataclass.
Each attribute is converted according to the dataclass's type hints::

    float      JSON number (booleans are rejected)
    str        JSON string
    bool       JSON true/false
    datetime   ISO 8601 string, e.g. "2005-06-08T10:34:48.283Z"
    Activated  JSON number, else JSON string
    tuple[X]   JSON array of objects decoded as X

Unknown attributes are ignored and JSON ``null`` decodes to ``None``.
Every failure is raised as :class:`~gpsd_client.errors.DecodeError`, which
the session treats as recoverable.
"""

from __future__ import annotations

import dataclasses
import functools
import typing
from datetime import datetime, timezone
from typing import Any, Union

import orjson

from gpsd_client.errors import DecodeError, UnknownClass
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
    Report,
)

_REPORT_TYPES: dict[str, type] = {
    "TPV": TPV,
    "SKY": SKY,
    "GST": GST,
    "ATT": ATT,
    "VERSION": VERSION,
    "DEVICES": DEVICES,
    "WATCH": WATCH,
    "POLL": POLL,
    "TOFF": TOFF,
    "PPS": PPS,
    "OSC": OSC,
    "DEVICE": DEVICE,
    "ERROR": ERROR,
}

KNOWN_CLASSES = frozenset(_REPORT_TYPES)


def decode(tag: str, frame: bytes) -> Report:
    """Decode *frame* into the report type registered for *tag*.

    Parameters
    ----------
    tag:
        The class name returned by :func:`gpsd_client.classifier.classify`.
    frame:
        One JSON line with its terminator already stripped.

    Raises
    ------
    UnknownClass
        If *tag* is not one of :data:`KNOWN_CLASSES`.  The frame is not
        parsed in that case.
    DecodeError
        If the frame is not a JSON object or an attribute has the wrong
        wire type.
    """
    report_type = _REPORT_TYPES.get(tag)
    if report_type is None:
        raise UnknownClass(tag)

    try:
        obj = orjson.loads(frame)
    except orjson.JSONDecodeError as exc:
        raise DecodeError(f"{tag}: {exc}") from exc

    return _build(report_type, obj, tag)


# ── helpers ─────────────────────────────────────────────────────────


@functools.lru_cache(maxsize=None)
def _hints(cls: type) -> dict[str, Any]:
    return typing.get_type_hints(cls)


def _build(cls: type, obj: Any, path: str):
    """Instantiate dataclass *cls* from the JSON object *obj*."""
    if not isinstance(obj, dict):
        raise DecodeError(f"{path}: expected object, got {type(obj).__name__}")

    hints = _hints(cls)
    kwargs = {}
    for f in dataclasses.fields(cls):
        key = f.metadata.get("wire", f.name)
        if key in obj:
            kwargs[f.name] = _convert(hints[f.name], obj[key], f"{path}.{key}")
    return cls(**kwargs)


def _convert(hint: Any, value: Any, path: str) -> Any:
    if value is None:
        return None

    if typing.get_origin(hint) is Union:
        hint = next(a for a in typing.get_args(hint) if a is not type(None))

    if hint is float:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise _type_error(path, "number", value)
        return float(value)
    if hint is str:
        if not isinstance(value, str):
            raise _type_error(path, "string", value)
        return value
    if hint is bool:
        if not isinstance(value, bool):
            raise _type_error(path, "boolean", value)
        return value
    if hint is datetime:
        return _parse_time(value, path)
    if hint is Activated:
        return _parse_activated(value, path)
    if typing.get_origin(hint) is tuple:
        if not isinstance(value, list):
            raise _type_error(path, "array", value)
        item_type = typing.get_args(hint)[0]
        return tuple(
            _build(item_type, item, f"{path}[{i}]") for i, item in enumerate(value)
        )
    if dataclasses.is_dataclass(hint):
        return _build(hint, value, path)

    raise DecodeError(f"{path}: unsupported field type {hint!r}")


def _parse_time(value: Any, path: str) -> datetime:
    if not isinstance(value, str):
        raise _type_error(path, "timestamp string", value)
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError as exc:
        raise DecodeError(f"{path}: invalid timestamp {value!r}") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _parse_activated(value: Any, path: str) -> Activated:
    """Accept the polymorphic ``activated`` attribute: number first, then string."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return Activated(number=float(value))
    if isinstance(value, str):
        return Activated(text=value)
    raise _type_error(path, "number or string", value)


def _type_error(path: str, expected: str, value: Any) -> DecodeError:
    return DecodeError(f"{path}: expected {expected}, got {type(value).__name__}")

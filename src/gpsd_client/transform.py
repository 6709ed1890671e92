"""Serialize reports into NDJSON records.

Records use the wire attribute names, so a TPV comes out looking like the
frame gpsd sent, plus a ``received_at`` stamp.  Attributes the daemon did
not send (``None``) are omitted.  RAW passthrough lines are written as::

    {"class":"RAW","data":"$GPGGA,...","received_at":"..."}

Payloads that are not valid UTF-8 (binary packets requested with
``raw=2``) are base64 encoded and marked ``"encoding":"base64"``.
"""

from __future__ import annotations

import base64
import dataclasses
from datetime import datetime, timezone
from typing import Any, Optional

import orjson

from gpsd_client.models import Activated, Raw, Report


def report_to_dict(report: Report) -> dict[str, Any]:
    """Convert *report* into a JSON-ready dict keyed by wire names."""
    if isinstance(report, Raw):
        return _raw_to_dict(report.data)
    return _to_dict(report)


def serialize_report(report: Report, received_at: Optional[datetime] = None) -> bytes:
    """Serialize *report* as one newline-terminated NDJSON line.

    Parameters
    ----------
    report:
        Any decoded report, including :class:`~gpsd_client.models.Raw`.
    received_at:
        When the report was taken off the channel.  Defaults to now (UTC).

    Returns
    -------
    bytes
        ``orjson``-serialized NDJSON line.
    """
    record = report_to_dict(report)
    record["received_at"] = (received_at or datetime.now(timezone.utc)).isoformat()
    return orjson.dumps(record, option=orjson.OPT_APPEND_NEWLINE)


def _raw_to_dict(data: bytes) -> dict[str, Any]:
    try:
        return {"class": "RAW", "data": data.decode("utf-8")}
    except UnicodeDecodeError:
        return {
            "class": "RAW",
            "data": base64.b64encode(data).decode("ascii"),
            "encoding": "base64",
        }


def _to_dict(obj: Any) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for f in dataclasses.fields(obj):
        value = _plain(getattr(obj, f.name))
        if value is not None:
            out[f.metadata.get("wire", f.name)] = value
    return out


def _plain(value: Any) -> Any:
    if isinstance(value, Activated):
        return value.value
    if isinstance(value, tuple):
        return [_to_dict(item) for item in value]
    if dataclasses.is_dataclass(value):
        return _to_dict(value)
    if isinstance(value, datetime):
        return value.isoformat()
    return value

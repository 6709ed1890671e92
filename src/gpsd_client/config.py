"""Configuration loading, environment-variable interpolation, and validation.

Resolution order for ``${VAR}`` placeholders:
    CLI overrides → environment variables → raw config value.

``${VAR}`` (no default) raises if unresolvable.
``${VAR:-default}`` falls back to *default*.

Every section is optional; a missing config file means all defaults.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import jsonschema
import orjson

from gpsd_client.commands import RawLevel, StreamPolicy
from gpsd_client.session import DEFAULT_ADDRESS, DEFAULT_LINE_LIMIT

logger = logging.getLogger(__name__)

_VAR_RE = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)(?::-(.*?))?\}")

_SCHEMA_PATH = Path(__file__).resolve().parent.parent.parent / "config" / "config.schema.json"


@dataclass
class GpsdConfig:
    """Daemon connection settings."""

    address: str = DEFAULT_ADDRESS
    channel_size: int = 1
    line_limit: int = DEFAULT_LINE_LIMIT


@dataclass
class WatchConfig:
    """The ``?WATCH`` policy sent right after connecting."""

    enable: bool = True
    json: bool = True
    nmea: bool = False
    raw: int = 0
    scaled: bool = False
    timing: bool = False
    split24: bool = False
    pps: bool = False
    device: Optional[str] = None

    def to_policy(self) -> StreamPolicy:
        return StreamPolicy(
            enable=self.enable,
            json=self.json,
            nmea=self.nmea,
            raw=RawLevel(self.raw),
            scaled=self.scaled,
            timing=self.timing,
            split24=self.split24,
            pps=self.pps,
            device=self.device or None,
        )


@dataclass
class FilterConfig:
    """Report filtering rules."""

    drop_classes: list[str] = field(default_factory=list)
    keep_classes: list[str] = field(default_factory=list)
    keep_devices: list[str] = field(default_factory=list)


@dataclass
class OutputConfig:
    """Where streamed reports are written."""

    mode: str = "stdout"
    path: str = "reports.ndjson"


@dataclass
class LoggingConfig:
    """Logging settings."""

    level: str = "info"
    format: str = "json"


@dataclass
class AppConfig:
    """Top-level application configuration."""

    gpsd: GpsdConfig = field(default_factory=GpsdConfig)
    watch: WatchConfig = field(default_factory=WatchConfig)
    filter: FilterConfig = field(default_factory=FilterConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _interpolate_value(value: str, overrides: dict[str, str] | None = None) -> str:
    """Replace ``${VAR}`` / ``${VAR:-default}`` in *value*."""

    def _replacer(match: re.Match) -> str:
        var_name = match.group(1)
        default = match.group(2)  # None when no ``:-`` present

        if overrides and var_name in overrides:
            return overrides[var_name]
        env_val = os.environ.get(var_name)
        if env_val is not None:
            return env_val
        if default is not None:
            return default

        raise ValueError(
            f"Required variable ${{{var_name}}} is not set in environment "
            f"or CLI overrides"
        )

    return _VAR_RE.sub(_replacer, value)


def _walk_and_interpolate(obj: Any, overrides: dict[str, str] | None = None) -> Any:
    """Recursively interpolate all string values in a JSON-like structure."""
    if isinstance(obj, str):
        return _interpolate_value(obj, overrides)
    if isinstance(obj, dict):
        return {k: _walk_and_interpolate(v, overrides) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_walk_and_interpolate(item, overrides) for item in obj]
    return obj


def _section(cls: type, raw: dict[str, Any]):
    """Build dataclass *cls* from the known keys of *raw*."""
    return cls(**{k: raw[k] for k in raw if k in cls.__dataclass_fields__})


def _dict_to_config(raw: dict[str, Any]) -> AppConfig:
    """Convert a raw dict into a typed :class:`AppConfig`."""
    return AppConfig(
        gpsd=_section(GpsdConfig, raw.get("gpsd", {})),
        watch=_section(WatchConfig, raw.get("watch", {})),
        filter=_section(FilterConfig, raw.get("filter", {})),
        output=_section(OutputConfig, raw.get("output", {})),
        logging=_section(LoggingConfig, raw.get("logging", {})),
    )


def load_config(
    path: str | Path | None = None,
    overrides: dict[str, str] | None = None,
    schema_path: str | Path | None = None,
) -> AppConfig:
    """Load, interpolate, validate, and return the application config.

    Parameters
    ----------
    path:
        Filesystem path to a JSON config file.  ``None`` yields the
        defaults.
    overrides:
        CLI-supplied variable overrides.
    schema_path:
        Path to the JSON Schema file.  Defaults to
        ``config/config.schema.json`` relative to the project root.

    Raises
    ------
    ValueError
        If a required ``${VAR}`` cannot be resolved.
    jsonschema.ValidationError
        If the config fails schema validation.
    """
    if path is None:
        return AppConfig()

    raw: dict[str, Any] = orjson.loads(Path(path).read_bytes())
    interpolated = _walk_and_interpolate(raw, overrides=overrides)

    sp = Path(schema_path) if schema_path else _SCHEMA_PATH
    if sp.exists():
        schema = orjson.loads(sp.read_bytes())
        jsonschema.validate(instance=interpolated, schema=schema)
        logger.debug("Config passed schema validation")
    else:
        logger.warning("Schema file not found at %s, skipping validation", sp)

    return _dict_to_config(interpolated)

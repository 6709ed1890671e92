"""Tests for the config module."""

from pathlib import Path

import jsonschema
import orjson
import pytest

from gpsd_client.commands import RawLevel, WatchFlag
from gpsd_client.config import AppConfig, WatchConfig, load_config
from gpsd_client.session import DEFAULT_ADDRESS

SCHEMA = Path(__file__).resolve().parent.parent / "config" / "config.schema.json"


def _write(tmp_path: Path, data: dict) -> Path:
    path = tmp_path / "config.json"
    path.write_bytes(orjson.dumps(data))
    return path


def test_defaults_without_file() -> None:
    """No config file means built-in defaults."""
    cfg = load_config(None)
    assert cfg == AppConfig()
    assert cfg.gpsd.address == DEFAULT_ADDRESS
    assert cfg.gpsd.channel_size == 1


def test_sections_are_loaded(tmp_path: Path) -> None:
    """Known keys override defaults, missing ones keep them."""
    path = _write(tmp_path, {
        "gpsd": {"address": "gps.local:2947", "channel_size": 4},
        "watch": {"nmea": True, "raw": 1},
        "filter": {"drop_classes": ["RAW"]},
        "logging": {"level": "debug"},
    })
    cfg = load_config(path, schema_path=SCHEMA)

    assert cfg.gpsd.address == "gps.local:2947"
    assert cfg.gpsd.channel_size == 4
    assert cfg.watch.nmea is True
    assert cfg.watch.json is True
    assert cfg.filter.drop_classes == ["RAW"]
    assert cfg.logging.level == "debug"
    assert cfg.output.mode == "stdout"


def test_env_interpolation(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """``${VAR}`` resolves from the environment, ``${VAR:-x}`` falls back."""
    monkeypatch.setenv("TEST_GPSD_HOST", "10.0.0.5:2947")
    monkeypatch.delenv("TEST_GPSD_DEVICE", raising=False)
    path = _write(tmp_path, {
        "gpsd": {"address": "${TEST_GPSD_HOST}"},
        "watch": {"device": "${TEST_GPSD_DEVICE:-/dev/ttyACM0}"},
    })
    cfg = load_config(path, schema_path=SCHEMA)

    assert cfg.gpsd.address == "10.0.0.5:2947"
    assert cfg.watch.device == "/dev/ttyACM0"


def test_overrides_win_over_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """CLI overrides take precedence over the environment."""
    monkeypatch.setenv("GPSD_ADDRESS", "env-host:1")
    path = _write(tmp_path, {"gpsd": {"address": "${GPSD_ADDRESS}"}})
    cfg = load_config(path, overrides={"GPSD_ADDRESS": "cli-host:2"}, schema_path=SCHEMA)
    assert cfg.gpsd.address == "cli-host:2"


def test_unresolved_variable(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """A required variable that is not set is an error."""
    monkeypatch.delenv("TEST_GPSD_MISSING", raising=False)
    path = _write(tmp_path, {"gpsd": {"address": "${TEST_GPSD_MISSING}"}})
    with pytest.raises(ValueError, match="TEST_GPSD_MISSING"):
        load_config(path, schema_path=SCHEMA)


def test_schema_rejects_bad_values(tmp_path: Path) -> None:
    """Out-of-range raw levels fail validation."""
    path = _write(tmp_path, {"watch": {"raw": 3}})
    with pytest.raises(jsonschema.ValidationError):
        load_config(path, schema_path=SCHEMA)


def test_example_config_is_valid(monkeypatch: pytest.MonkeyPatch) -> None:
    """The shipped example config passes the schema."""
    monkeypatch.delenv("GPSD_ADDRESS", raising=False)
    monkeypatch.delenv("GPSD_DEVICE", raising=False)
    cfg = load_config(SCHEMA.parent / "config.example.json", schema_path=SCHEMA)
    assert cfg.gpsd.address == "localhost:2947"
    assert cfg.watch.to_policy().device is None


def test_watch_config_to_policy() -> None:
    """The watch section becomes a StreamPolicy."""
    policy = WatchConfig(json=True, raw=2, pps=True, device="/dev/gps0").to_policy()
    assert policy.raw is RawLevel.RAW
    assert policy.flags() == (
        WatchFlag.ENABLE | WatchFlag.JSON | WatchFlag.RAW | WatchFlag.PPS | WatchFlag.DEVICE
    )

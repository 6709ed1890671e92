"""Click CLI for gpsd-client.

Entry point registered in ``pyproject.toml`` as ``gpsd-client``.

Subcommands::

    gpsd-client                      # stream reports as NDJSON (default: stdout)
    gpsd-client --count 10 --class TPV
    gpsd-client send '?POLL;'        # send one command verbatim, print replies
"""

from __future__ import annotations

import asyncio
import logging
import os
import signal
import sys
from typing import Optional

import click
import orjson

from gpsd_client import __version__
from gpsd_client.config import AppConfig, load_config
from gpsd_client.errors import SessionClosed
from gpsd_client.filter import ReportFilter
from gpsd_client.output import FileSink, StdoutSink
from gpsd_client.session import Session, dial
from gpsd_client.transform import serialize_report

logger = logging.getLogger("gpsd_client")

_TRUTHY = {"1", "t", "true", "y", "yes", "on"}


# ── structured JSON log formatter ───────────────────────────────────


class _JsonFormatter(logging.Formatter):
    """Emit log records as single-line JSON to stderr."""

    def format(self, record: logging.LogRecord) -> str:
        obj = {
            "ts": self.formatTime(record, self.datefmt),
            "level": record.levelname.lower(),
            "logger": record.name,
            "event": record.getMessage(),
        }
        if record.exc_info and record.exc_info[0] is not None:
            obj["exception"] = self.formatException(record.exc_info)
        return orjson.dumps(obj).decode()


def _setup_logging(level: str, fmt: str = "json") -> None:
    """Configure the root logger to write to stderr."""
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    handler = logging.StreamHandler(sys.stderr)
    if fmt == "text":
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s")
        )
    else:
        handler.setFormatter(_JsonFormatter())
    root.addHandler(handler)


def _effective_level(cli_level: Optional[str], cfg: AppConfig) -> str:
    """CLI flag → GPSD_LOG_LEVEL → GPSD_DEBUG → config."""
    if cli_level:
        return cli_level
    if os.environ.get("GPSD_LOG_LEVEL"):
        return os.environ["GPSD_LOG_LEVEL"]
    if os.environ.get("GPSD_DEBUG", "").strip().lower() in _TRUTHY:
        return "debug"
    return cfg.logging.level


def _install_signal_handlers(session: Session) -> None:
    loop = asyncio.get_running_loop()

    def _handle_signal() -> None:
        logger.info("Received shutdown signal")
        session.close()

    for sig in (signal.SIGTERM, signal.SIGINT):
        try:
            loop.add_signal_handler(sig, _handle_signal)
        except NotImplementedError:
            pass  # Windows


def _exit_on_session_error(err: Optional[BaseException]) -> None:
    if err is not None and not isinstance(err, SessionClosed):
        click.echo(f"Session ended: {err}", err=True)
        raise SystemExit(1)


# ── main CLI group ──────────────────────────────────────────────────


@click.group(invoke_without_command=True)
@click.option("-c", "--config", "config_path", default=None,
              help="Config file path (default: $GPSD_CONFIG, else built-in defaults).")
@click.option("-a", "--address", default=None, help="gpsd address, host:port.")
@click.option("-o", "--output", "output_mode", type=click.Choice(["stdout", "file"]),
              default=None, help="Output mode (default: stdout).")
@click.option("--output-path", default=None, help="File for --output file.")
@click.option("--device", default=None, help="Only watch this device path.")
@click.option("--nmea", is_flag=True, help="Also request NMEA sentences.")
@click.option("--class", "classes", multiple=True,
              help="Only output reports of this class (repeatable).")
@click.option("-n", "--count", default=0, type=int,
              help="Exit after this many reports (0: run until stopped).")
@click.option("--log-level", default=None,
              type=click.Choice(["debug", "info", "warn", "error"]),
              help="Log verbosity.")
@click.option("--validate-config", "validate_only", is_flag=True,
              help="Validate config and exit.")
@click.version_option(__version__)
@click.pass_context
def main(
    ctx: click.Context,
    config_path: Optional[str],
    address: Optional[str],
    output_mode: Optional[str],
    output_path: Optional[str],
    device: Optional[str],
    nmea: bool,
    classes: tuple[str, ...],
    count: int,
    log_level: Optional[str],
    validate_only: bool,
) -> None:
    """gpsd-client: stream gpsd reports as NDJSON."""
    cfg_path = config_path or os.environ.get("GPSD_CONFIG")

    overrides: dict[str, str] = {}
    if address:
        overrides["GPSD_ADDRESS"] = address

    try:
        cfg = load_config(cfg_path, overrides=overrides)
    except Exception as exc:
        click.echo(f"Config error: {exc}", err=True)
        raise SystemExit(1) from exc

    if address:
        cfg.gpsd.address = address
    elif os.environ.get("GPSD_ADDRESS"):
        cfg.gpsd.address = os.environ["GPSD_ADDRESS"]
    if output_mode:
        cfg.output.mode = output_mode
    if output_path:
        cfg.output.path = output_path
    if device:
        cfg.watch.device = device
    if nmea:
        cfg.watch.nmea = True
    if classes:
        cfg.filter.keep_classes = list(classes)

    _setup_logging(_effective_level(log_level, cfg), cfg.logging.format)

    if validate_only:
        click.echo("Configuration is valid.", err=True)
        raise SystemExit(0)

    ctx.obj = cfg
    if ctx.invoked_subcommand is not None:
        return  # defer to subcommand

    logger.info(
        "Starting gpsd-client %s (address=%s, output=%s)",
        __version__,
        cfg.gpsd.address,
        cfg.output.mode,
    )

    try:
        err = asyncio.run(_run_stream(cfg, count))
    except OSError as exc:
        click.echo(f"Connection error: {exc}", err=True)
        raise SystemExit(1) from exc
    _exit_on_session_error(err)


# ── async pipeline ──────────────────────────────────────────────────


async def _open(cfg: AppConfig) -> Session:
    return await dial(
        cfg.gpsd.address,
        limit=cfg.gpsd.line_limit,
        channel_size=cfg.gpsd.channel_size,
    )


async def _run_stream(cfg: AppConfig, count: int) -> Optional[BaseException]:
    """Connect → watch → filter → serialize → sink.  Returns the session error."""
    session = await _open(cfg)
    _install_signal_handlers(session)

    filt = ReportFilter(cfg.filter)
    if cfg.output.mode == "file":
        sink = FileSink(cfg.output.path)
    else:
        sink = StdoutSink()

    written = 0
    try:
        await session.stream_policy(cfg.watch.to_policy())
        async for report in session.reports:
            if filt.apply(report) is None:
                continue
            try:
                sink.write(serialize_report(report))
            except BrokenPipeError:
                break
            written += 1
            if count and written >= count:
                break
    except SessionClosed:
        pass  # closed by a signal before the watch command went out
    except OSError as exc:
        logger.error("Write failed: %s", exc)
    finally:
        session.close()
        await session.wait_closed()
        sink.close()
        logger.info("Stream shut down (wrote %d reports)", written)

    return session.err


async def _run_command(cfg: AppConfig, command: bytes, replies: int) -> Optional[BaseException]:
    session = await _open(cfg)
    _install_signal_handlers(session)

    sink = StdoutSink()
    skip_greeting = not command.startswith(b"?VERSION")
    seen = 0
    try:
        await session.send(command)
        async for report in session.reports:
            if skip_greeting and report.report_class == "VERSION":
                skip_greeting = False  # sent by gpsd on every connect
                continue
            sink.write(serialize_report(report))
            seen += 1
            if seen >= replies:
                break
    except SessionClosed:
        pass
    except OSError as exc:
        logger.error("Write failed: %s", exc)
    finally:
        session.close()
        await session.wait_closed()

    return session.err


# ── send subcommand ─────────────────────────────────────────────────


@main.command("send")
@click.argument("command")
@click.option("-r", "--replies", default=1, type=int, show_default=True,
              help="Number of reports to print before exiting.")
@click.pass_obj
def send(cfg: AppConfig, command: str, replies: int) -> None:
    """Send COMMAND to gpsd verbatim (e.g. '?DEVICES;') and print the replies."""
    try:
        err = asyncio.run(_run_command(cfg, command.encode(), replies))
    except OSError as exc:
        click.echo(f"Connection error: {exc}", err=True)
        raise SystemExit(1) from exc
    _exit_on_session_error(err)

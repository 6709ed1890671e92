"""Output sinks for NDJSON report lines.

StdoutSink
    Writes raw bytes to ``sys.stdout.buffer``, flushing every line so the
    stream can be piped into other tools.

FileSink
    Appends to a single ``.ndjson`` file, flushing every *flush_every_n*
    lines and on close.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

logger = logging.getLogger(__name__)


class StdoutSink:
    """Write NDJSON bytes directly to stdout."""

    def write(self, data: bytes) -> None:
        """Write *data* to ``sys.stdout.buffer``.

        Raises
        ------
        BrokenPipeError
            If the stdout consumer has gone away.
        """
        try:
            sys.stdout.buffer.write(data)
            sys.stdout.buffer.flush()
        except BrokenPipeError:
            logger.warning("stdout broken, consumer likely exited")
            raise

    def close(self) -> None:
        """No-op for stdout."""


class FileSink:
    """Append NDJSON lines to *path*, creating parent directories."""

    def __init__(self, path: str | Path, flush_every_n: int = 1) -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._flush_every_n = max(1, flush_every_n)
        self._pending = 0
        self._fh = open(self._path, "ab")
        logger.info("Writing reports to %s", self._path)

    @property
    def path(self) -> Path:
        return self._path

    def write(self, data: bytes) -> None:
        self._fh.write(data)
        self._pending += 1
        if self._pending >= self._flush_every_n:
            self._fh.flush()
            self._pending = 0

    def close(self) -> None:
        if not self._fh.closed:
            self._fh.flush()
            self._fh.close()

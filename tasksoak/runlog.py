"""
Plain-text run log of a soak run.

Each run (or each round, see ``log_reset``) truncates the file, writes a
header, and then appends one line per event::

    [2026-10-18T09:12:03.114Z] [ACTION] Inserted task: Qx (ID: 7) priority: low
    [2026-10-18T09:12:03.131Z] [ERROR] completed_count mismatch. Expected: 3, Found: 2

Section markers such as ``=== Round 2 ===`` are written without a
timestamp.  The sink is a dedicated non-propagating :mod:`logging` logger
so the harness's own diagnostics never end up in the file and vice versa.
"""

from __future__ import annotations

import itertools
import logging
from datetime import datetime, timezone
from pathlib import Path

ACTION = "ACTION"
ERROR = "ERROR"

DEFAULT_HEADER = "Soak Test Log:"

_TAGS = {logging.INFO: ACTION, logging.ERROR: ERROR}
_instances = itertools.count(1)


class RunLogFormatter(logging.Formatter):
    """Formats records as ``[ISO-8601 UTC] [TAG] message``."""

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        if getattr(record, "raw", False):
            return message
        stamp = datetime.fromtimestamp(record.created, timezone.utc)
        iso = stamp.isoformat(timespec="milliseconds").replace("+00:00", "Z")
        tag = _TAGS.get(record.levelno, record.levelname)
        return f"[{iso}] [{tag}] {message}"


class RunLog:
    """
    Injectable action/error sink backed by a log file.

    Args:
        path: Log file location; ``None`` discards every entry.
        header: First line written whenever the file is reset.
    """

    def __init__(self, path: str | Path | None, header: str = DEFAULT_HEADER):
        self.path = Path(path) if path is not None else None
        self.header = header
        self._logger = logging.getLogger(f"tasksoak.runlog.{next(_instances)}")
        self._logger.setLevel(logging.INFO)
        self._logger.propagate = False
        self._handler: logging.Handler | None = None
        self.reset()

    def reset(self) -> None:
        """Truncate the file and write the header line."""
        self._detach()
        if self.path is None:
            self._handler = logging.NullHandler()
        else:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._handler = logging.FileHandler(self.path, mode="w", encoding="utf-8")
            self._handler.setFormatter(RunLogFormatter())
        self._logger.addHandler(self._handler)
        self.raw(self.header)

    def action(self, message: str) -> None:
        self._logger.info(message)

    def error(self, message: str) -> None:
        self._logger.error(message)

    def raw(self, message: str) -> None:
        """Write a line without timestamp or tag."""
        self._logger.info(message, extra={"raw": True})

    def section(self, title: str) -> None:
        self.raw(f"\n=== {title} ===\n")

    def close(self) -> None:
        self._detach()

    def _detach(self) -> None:
        if self._handler is not None:
            self._logger.removeHandler(self._handler)
            self._handler.close()
            self._handler = None

    def __enter__(self) -> RunLog:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

"""Command and store activity log for a skis project.

Every record becomes one JSON object per line in ``.skis/skis.log``.  The
file rolls over at 5MB and three old files are kept.  CLI commands attach
``command``, ``args_data``, ``duration_ms`` and ``error`` through ``extra=``;
those land in the record under the keys listed in ``_EXTRA_FIELDS``.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

_LOG_FILENAME = "skis.log"
_MAX_BYTES = 5 * 1024 * 1024
_BACKUP_COUNT = 3

# (LogRecord attribute, JSON key)
_EXTRA_FIELDS: tuple[tuple[str, str], ...] = (
    ("command", "command"),
    ("args_data", "args"),
    ("duration_ms", "duration_ms"),
    ("error", "error"),
)

_handler_lock = threading.Lock()


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "ts": self.formatTime(record, datefmt="%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for attr, key in _EXTRA_FIELDS:
            if hasattr(record, attr):
                entry[key] = getattr(record, attr)
        if record.exc_info and record.exc_info[1]:
            entry["exception"] = str(record.exc_info[1])
        return json.dumps(entry, default=str)


def log_path(skis_dir: Path) -> Path:
    """Location of the activity log inside *skis_dir*."""
    return skis_dir / _LOG_FILENAME


def _resolve_level(level: str | int) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    # Unknown names come back as "Level X" strings.
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logging(skis_dir: Path, level: str | int = "INFO") -> logging.Logger:
    """Point the ``skis`` logger at the activity log of *skis_dir*.

    One file handler is kept per process.  Repeating the call for the same
    project only updates the level; a call for another project closes the
    old handler and opens the new file.
    """
    logger = logging.getLogger("skis")
    target = os.path.abspath(str(log_path(skis_dir)))

    with _handler_lock:
        logger.setLevel(_resolve_level(level))
        file_handlers = [h for h in logger.handlers if isinstance(h, RotatingFileHandler)]
        if any(h.baseFilename == target for h in file_handlers):
            return logger
        for stale in file_handlers:
            logger.removeHandler(stale)
            stale.close()

        handler = RotatingFileHandler(target, maxBytes=_MAX_BYTES, backupCount=_BACKUP_COUNT)
        handler.setFormatter(_JsonFormatter())
        logger.addHandler(handler)
    return logger

"""
Logging configuration for the bootstrap run.

Called once at startup by main.py.  Every module that does
``logger = logging.getLogger(__name__)`` inherits this config.

The console stays quiet by default (WARNING): progress lines are printed
by ``devbootstrap.ui.console``, not through logging.  The optional log
file is where the diagnostic detail goes (commands run, probe tiers,
removed directories), so it defaults to DEBUG.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

_CONSOLE_FORMATS = {
    logging.DEBUG: ("%(asctime)s %(levelname)-5s %(name)s:%(lineno)d  %(message)s", "%H:%M:%S"),
    logging.INFO: ("%(asctime)s [%(name)s] %(message)s", "%H:%M:%S"),
}
_FMT_MINIMAL = "%(levelname)s: %(message)s"

_FMT_FILE = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d  %(message)s"
_DATEFMT_FILE = "%Y-%m-%d %H:%M:%S"

DEFAULT_FILE_LEVEL = "DEBUG"


def _console_formatter(numeric_level: int) -> logging.Formatter:
    for threshold in (logging.DEBUG, logging.INFO):
        if numeric_level <= threshold:
            fmt, datefmt = _CONSOLE_FORMATS[threshold]
            return logging.Formatter(fmt, datefmt=datefmt)
    return logging.Formatter(_FMT_MINIMAL)


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
) -> None:
    """Configure the root logger for the whole process.

    Args:
        level: Console level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Optional log file; its parent directory is created.
        log_file_level: Level for the log file, DEBUG when not given.
    """
    numeric_level = _parse_level(level)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(numeric_level)
    console.setFormatter(_console_formatter(numeric_level))

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        if isinstance(handler, logging.FileHandler):
            handler.close()
    root.addHandler(console)

    effective_level = numeric_level
    if log_file:
        file_level = _parse_level(log_file_level or DEFAULT_FILE_LEVEL)
        effective_level = min(effective_level, file_level)

        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(path, encoding="utf-8")
        fh.setLevel(file_level)
        fh.setFormatter(logging.Formatter(_FMT_FILE, datefmt=_DATEFMT_FILE))
        root.addHandler(fh)

    root.setLevel(effective_level)
    logging.raiseExceptions = False


def _parse_level(level: str | None) -> int:
    """Level name to its numeric constant; WARNING for anything unknown."""
    if not level:
        return logging.WARNING
    numeric = getattr(logging, level.upper(), None)
    if not isinstance(numeric, int):
        return logging.WARNING
    return numeric

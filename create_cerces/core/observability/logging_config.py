"""
Logging configuration — set up once when the CLI starts.

Modules log through ``logging.getLogger(__name__)``; user-facing
progress is printed by the CLI with ``click.secho`` and never goes
through logging. Diagnostics therefore stay quiet (WARNING) unless
asked for.

Level precedence:
    --debug  >  --verbose  >  --quiet  >  CERCES_LOG_LEVEL  >  WARNING

Optional file output via CERCES_LOG_FILE / CERCES_LOG_FILE_LEVEL.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Mapping

LOG_LEVEL_VAR = "CERCES_LOG_LEVEL"
LOG_FILE_VAR = "CERCES_LOG_FILE"
LOG_FILE_LEVEL_VAR = "CERCES_LOG_FILE_LEVEL"

# Console formats, picked by level
_CONSOLE_FORMATS: dict[int, tuple[str, str | None]] = {
    logging.DEBUG: ("%(asctime)s %(levelname)-5s %(name)s:%(lineno)d — %(message)s", "%H:%M:%S"),
    logging.INFO: ("%(asctime)s [%(name)s] %(message)s", "%H:%M:%S"),
    logging.WARNING: ("%(levelname)s: %(message)s", None),
}

_FILE_FORMAT = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d — %(message)s"
_FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"

# Chatty libraries kept at WARNING unless we are debugging
_NOISY_LOGGERS = ("urllib3", "filelock")


def resolve_level(
    debug: bool = False,
    verbose: bool = False,
    quiet: bool = False,
    environ: Mapping[str, str] | None = None,
) -> str:
    """Pick the console level name from CLI flags and the environment."""
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    if quiet:
        return "ERROR"
    env = os.environ if environ is None else environ
    return env.get(LOG_LEVEL_VAR, "WARNING")


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
) -> None:
    """Configure the root logger for the whole process.

    Args:
        level: Console level name (DEBUG, INFO, WARNING, ERROR).
        log_file: Optional log file path.
        log_file_level: Level for the file handler (default: ``level``).
    """
    console_level = _parse_level(level)
    fmt_key = max(k for k in _CONSOLE_FORMATS if k <= max(console_level, logging.DEBUG))
    fmt, datefmt = _CONSOLE_FORMATS[fmt_key]

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(logging.Formatter(fmt, datefmt=datefmt))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(console)
    root_level = console_level

    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else console_level
        root_level = min(root_level, file_level)
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(file_level)
        fh.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt=_FILE_DATEFMT))
        root.addHandler(fh)

    root.setLevel(root_level)

    if console_level > logging.DEBUG:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    logging.raiseExceptions = False


def _parse_level(level: str | None) -> int:
    """Level name → numeric level; unknown names mean WARNING."""
    if not level:
        return logging.WARNING
    numeric = logging.getLevelName(level.upper())
    return numeric if isinstance(numeric, int) else logging.WARNING

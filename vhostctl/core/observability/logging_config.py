"""
Logging configuration — one setup call from the CLI entrypoint.

Modules only ever do ``logger = logging.getLogger(__name__)``; handlers
and levels are decided here, once per process.

Console level precedence:
    --debug  >  --verbose  >  --quiet  >  $VHOSTCTL_LOG_LEVEL  >  WARNING

A second, independent file handler is enabled by $VHOSTCTL_LOG_FILE
(level from $VHOSTCTL_LOG_FILE_LEVEL). Command transcripts are not
logged; they go to the audit ledger.
"""

from __future__ import annotations

import logging
import os
import sys

LEVEL_ENV_VAR = "VHOSTCTL_LOG_LEVEL"
FILE_ENV_VAR = "VHOSTCTL_LOG_FILE"
FILE_LEVEL_ENV_VAR = "VHOSTCTL_LOG_FILE_LEVEL"

# (format, datefmt) per console verbosity; the first entry whose level
# is >= the configured level wins
_CONSOLE_FORMATS: list[tuple[int, str, str | None]] = [
    (logging.DEBUG, "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d  %(message)s", "%H:%M:%S"),
    (logging.INFO, "%(asctime)s [%(name)s] %(message)s", "%H:%M:%S"),
    (logging.CRITICAL, "%(message)s", None),
]

_FILE_FORMAT = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d  %(message)s"
_FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"


def resolve_level(debug: bool = False, verbose: bool = False, quiet: bool = False) -> str:
    """Pick the console level name from CLI flags and the environment."""
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    if quiet:
        return "ERROR"
    return os.environ.get(LEVEL_ENV_VAR, "WARNING")


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
) -> None:
    """Install the console handler (stderr) and, optionally, a file handler.

    Args:
        level: Console level name.
        log_file: Path of an extra log file, or None.
        log_file_level: Level for the file; defaults to ``level``.
    """
    console_level = _parse_level(level)
    fmt, datefmt = _console_format(console_level)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(logging.Formatter(fmt, datefmt=datefmt))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(console)
    root_level = console_level

    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else console_level
        handler = logging.FileHandler(log_file, encoding="utf-8")
        handler.setLevel(file_level)
        handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt=_FILE_DATEFMT))
        root.addHandler(handler)
        root_level = min(root_level, file_level)

    root.setLevel(root_level)


def setup_logging_from_env(level: str) -> None:
    """``setup_logging`` with the file handler taken from the environment."""
    setup_logging(
        level=level,
        log_file=os.environ.get(FILE_ENV_VAR),
        log_file_level=os.environ.get(FILE_LEVEL_ENV_VAR),
    )


def _console_format(level: int) -> tuple[str, str | None]:
    for threshold, fmt, datefmt in _CONSOLE_FORMATS:
        if level <= threshold:
            return fmt, datefmt
    return _CONSOLE_FORMATS[-1][1], _CONSOLE_FORMATS[-1][2]


def _parse_level(level: str | None) -> int:
    """Level name to its numeric value; unknown names mean WARNING."""
    if not level:
        return logging.WARNING
    numeric = logging.getLevelName(level.strip().upper())
    return numeric if isinstance(numeric, int) else logging.WARNING

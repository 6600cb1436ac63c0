"""
Build log setup.

``configure_build_log`` is called once by main.py; modules log through
``logging.getLogger(__name__)`` and never touch handlers.

The compile narrates itself with ordinary log records.  At INFO and
above the console shows them the way buildpack output is read::

    -----> Resolving node version       (record with extra=TOPIC)
           Using cache (versions unchanged)
     !     Unable to fetch ...           (WARNING and above)

At DEBUG the console switches to timestamped records with the logger
name and line.  Level comes from the CLI flags (``--debug``, ``-v``,
``-q``), then SLUGBUILD_LOG_LEVEL, then INFO.  SLUGBUILD_LOG_FILE adds
a file copy at SLUGBUILD_LOG_FILE_LEVEL (defaults to the console level).
"""

from __future__ import annotations

import logging
import sys

TOPIC_PREFIX = "-----> "
DETAIL_PREFIX = "       "
ERROR_PREFIX = " !     "

# extra= payload that opens a new narration section
TOPIC = {"topic": True}

_DIAGNOSTIC_FMT = "%(asctime)s [%(levelname)s] %(name)s:%(lineno)d %(message)s"


class NarrationFormatter(logging.Formatter):
    """Prefix each record with the arrow, indent or bang for its kind."""

    def format(self, record: logging.LogRecord) -> str:
        if record.levelno >= logging.WARNING:
            head = ERROR_PREFIX
        elif getattr(record, "topic", False):
            head = TOPIC_PREFIX
        else:
            head = DETAIL_PREFIX
        first, *more = record.getMessage().splitlines() or [""]
        return "\n".join([head + first] + [DETAIL_PREFIX + line for line in more])


def configure_build_log(
    level: str = "INFO",
    log_file: str | None = None,
    log_file_level: str | None = None,
    stream=None,
) -> None:
    """Install the console handler, plus a file handler when ``log_file`` is set.

    Replaces whatever handlers the root logger had, so calling it twice
    (as the CLI tests do) does not duplicate output.
    """
    console_level = level_number(level)

    console = logging.StreamHandler(stream or sys.stderr)
    console.setLevel(console_level)
    if console_level > logging.DEBUG:
        console.setFormatter(NarrationFormatter())
    else:
        console.setFormatter(logging.Formatter(_DIAGNOSTIC_FMT, datefmt="%H:%M:%S"))

    handlers: list[logging.Handler] = [console]
    if log_file:
        to_file = logging.FileHandler(log_file, encoding="utf-8")
        to_file.setLevel(level_number(log_file_level) if log_file_level else console_level)
        to_file.setFormatter(logging.Formatter(_DIAGNOSTIC_FMT, datefmt="%Y-%m-%d %H:%M:%S"))
        handlers.append(to_file)

    root = logging.getLogger()
    root.handlers[:] = handlers
    root.setLevel(min(h.level for h in handlers))

    logging.raiseExceptions = False


def level_number(name: str | None) -> int:
    """``"debug"`` → ``logging.DEBUG``; unknown or empty names mean INFO."""
    value = getattr(logging, (name or "").upper(), None)
    return value if isinstance(value, int) else logging.INFO

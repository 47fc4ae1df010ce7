"""
Logging configuration for Studio CRM.

One 'studiocrm' logger tree; every module logs through
logging.getLogger(__name__) so records propagate up to it.

  Log file : logs/studiocrm.log
  Rotation : 5 MB × 3 backups
  Level    : LOG_LEVEL env var (DEBUG / INFO / WARNING / ERROR / CRITICAL)
             defaults to INFO when unset
  Console  : optional stderr handler (cli --verbose)

Usage
-----
    from studiocrm.logging_config import configure_logging, log_call

    configure_logging()                 # once per process, idempotent
    configure_logging(verbose=True)     # also echo records to stderr

    @log_call
    def reorder_venue(venue_id, new_order_num):
        ...

Log format per line
-------------------
    2026-10-18 14:32:01 | INFO     | studiocrm.engine.crm | Reordered venue 12: 4 -> 1 (3 shifted)
    2026-10-18 14:32:01 | INFO     | studiocrm | OK   venues_move | 18ms
    2026-10-18 14:32:01 | ERROR    | studiocrm | FAIL venues_move | NotFoundError: Venue 99 not found | 3ms
"""

import functools
import logging
import logging.handlers
import os
import sys
import time
from pathlib import Path

LOGGER_NAME = "studiocrm"

_LOG_DIR = Path(__file__).parent.parent / "logs"
_LOG_FILE = _LOG_DIR / "studiocrm.log"
_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_MAX_BYTES = 5 * 1024 * 1024  # 5 MB
_BACKUP_COUNT = 3

# Argument names whose values never reach the log file
_REDACTED_ARGS = {"api_key", "token", "password"}


def configure_logging(verbose: bool = False) -> logging.Logger:
    """
    Set up the studiocrm logger. Idempotent: a second call never adds a
    second file handler, but may still add the console handler.
    Returns the configured logger.
    """
    _LOG_DIR.mkdir(exist_ok=True)

    level_name = os.environ.get("LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)

    logger = logging.getLogger(LOGGER_NAME)
    formatter = logging.Formatter(_FORMAT, datefmt=_DATE_FORMAT)

    has_file = any(isinstance(h, logging.handlers.RotatingFileHandler) for h in logger.handlers)
    if not has_file:
        logger.setLevel(level)
        handler = logging.handlers.RotatingFileHandler(
            _LOG_FILE,
            maxBytes=_MAX_BYTES,
            backupCount=_BACKUP_COUNT,
            encoding="utf-8",
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    has_console = any(getattr(h, "_studiocrm_console", False) for h in logger.handlers)
    if verbose and not has_console:
        console = logging.StreamHandler(sys.stderr)
        console.setFormatter(formatter)
        console.setLevel(logging.DEBUG)
        console._studiocrm_console = True
        logger.addHandler(console)
        logger.setLevel(logging.DEBUG)

    return logger


def _format_args(args, kwargs) -> str:
    parts = [repr(a) for a in args]
    for key, value in kwargs.items():
        shown = "***" if key in _REDACTED_ARGS else repr(value)
        parts.append(f"{key}={shown}")
    return ", ".join(parts) if parts else "—"


def log_call(func):
    """
    Decorator: logs entry, clean exit, and exceptions for any function.

    - DEBUG on entry   : CALL <name> | args=(...)
    - INFO  on success : OK   <name> | <N>ms
    - ERROR on failure : FAIL <name> | ExcType: message | <N>ms   (then re-raises)
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        logger = logging.getLogger(LOGGER_NAME)
        name = func.__name__
        start = time.perf_counter()

        logger.debug(f"CALL {name} | args=({_format_args(args, kwargs)})")

        try:
            result = func(*args, **kwargs)
        except Exception as exc:
            ms = int((time.perf_counter() - start) * 1000)
            logger.error(f"FAIL {name} | {type(exc).__name__}: {exc} | {ms}ms")
            raise

        ms = int((time.perf_counter() - start) * 1000)
        logger.info(f"OK   {name} | {ms}ms")
        return result

    return wrapper

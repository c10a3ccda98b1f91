"""
Logging setup for sync runs.

Modules log through ``logging.getLogger(__name__)`` below the
``cozy_gcontacts`` logger. The CLI calls setup_logging() once per
invocation, which attaches:

- a stderr handler, colored by level when stderr is a terminal
- an optional file handler, one file per day, always at DEBUG

Each record is tagged with the source account of the run (``%(account)s``)
so that per-direction summaries and duplicate-id warnings of different
accounts can be told apart in a shared log file.
"""

import logging
import os
import sys
from datetime import date
from pathlib import Path
from typing import Optional, TextIO

LOGGER_NAME = "cozy_gcontacts"

# Environment overrides
ENV_LOG_LEVEL = "COZY_GCONTACTS_LOG_LEVEL"
ENV_DEBUG = "COZY_GCONTACTS_DEBUG"
ENV_LOG_FILE = "COZY_GCONTACTS_LOG_FILE"

CONSOLE_FORMAT = "%(levelname)s: %(message)s"
DEBUG_FORMAT = (
    "%(asctime)s %(levelname)-7s [%(account)s] %(name)s:%(lineno)d %(message)s"
)
FILE_FORMAT = "%(asctime)s %(levelname)-7s [%(account)s] %(name)s %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# ANSI SGR codes per level
LEVEL_COLORS = {
    logging.DEBUG: "36",
    logging.INFO: "32",
    logging.WARNING: "33",
    logging.ERROR: "31",
    logging.CRITICAL: "35",
}

NO_ACCOUNT = "-"


class AccountFilter(logging.Filter):
    """Stamp every record passing a handler with the run's source account."""

    def __init__(self, account_id: Optional[str] = None):
        super().__init__()
        self.account_id = account_id or NO_ACCOUNT

    def filter(self, record: logging.LogRecord) -> bool:
        record.account = self.account_id
        return True


class ColoredFormatter(logging.Formatter):
    """
    Formatter wrapping each line in the color of its level.

    Only the formatted line is colored; the record itself is left alone so
    the file handler still writes plain text.
    """

    def __init__(
        self,
        fmt: str = CONSOLE_FORMAT,
        datefmt: str = DATE_FORMAT,
        colors: bool = True,
    ):
        super().__init__(fmt, datefmt)
        self.colors = colors

    def formatMessage(self, record: logging.LogRecord) -> str:
        line = super().formatMessage(record)
        code = LEVEL_COLORS.get(record.levelno)
        if not self.colors or code is None:
            return line
        return f"\033[{code}m{line}\033[0m"


def stream_supports_color(stream: TextIO) -> bool:
    """True for a terminal stream, unless NO_COLOR is set or TERM is dumb."""
    if os.environ.get("NO_COLOR") or os.environ.get("TERM") == "dumb":
        return False
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


def level_from_env(default: int = logging.INFO) -> int:
    """
    Console level from the environment.

    ``COZY_GCONTACTS_DEBUG=1`` forces DEBUG; otherwise
    ``COZY_GCONTACTS_LOG_LEVEL`` names a level. Unknown names give
    ``default``.
    """
    if os.environ.get(ENV_DEBUG, "").lower() in ("1", "true", "yes"):
        return logging.DEBUG

    name = os.environ.get(ENV_LOG_LEVEL, "").strip().upper()
    if not name:
        return default
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else default


def log_file_path(
    log_dir: Optional[Path], today: Optional[date] = None
) -> Optional[Path]:
    """
    Where the file handler writes, or None for no file.

    ``COZY_GCONTACTS_LOG_FILE`` names the file explicitly; "none" or
    "disabled" turn file logging off. Otherwise a dated ``sync-YYYYMMDD.log``
    in ``log_dir`` is used.
    """
    override = os.environ.get(ENV_LOG_FILE)
    if override:
        if override.lower() in ("none", "disabled"):
            return None
        return Path(override).expanduser()

    if log_dir is None:
        return None
    today = today or date.today()
    return Path(log_dir).expanduser() / f"sync-{today:%Y%m%d}.log"


def setup_logging(
    verbose: bool = False,
    log_dir: Optional[Path] = None,
    source_account_id: Optional[str] = None,
    level: Optional[int] = None,
) -> logging.Logger:
    """
    Configure the ``cozy_gcontacts`` logger for one CLI invocation.

    Calling it again replaces the handlers of the previous call.

    Args:
        verbose: Log DEBUG to the console with file/line details
        log_dir: Directory for the dated log file (None: no file unless the
                 environment names one)
        source_account_id: Account tag stamped on every record
        level: Console level; defaults to the environment, or DEBUG when
               verbose

    Returns:
        The package logger
    """
    if level is None:
        level = logging.DEBUG if verbose else level_from_env()

    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    # Handlers do the level filtering; the file always gets DEBUG
    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    account = AccountFilter(source_account_id)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level)
    console.addFilter(account)
    console.setFormatter(
        ColoredFormatter(
            DEBUG_FORMAT if verbose else CONSOLE_FORMAT,
            colors=stream_supports_color(sys.stderr),
        )
    )
    logger.addHandler(console)

    path = log_file_path(log_dir)
    if path is not None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(path, encoding="utf-8")
        except OSError as e:
            logger.warning(f"Cannot write log file {path}: {e}")
        else:
            file_handler.setLevel(logging.DEBUG)
            file_handler.addFilter(account)
            file_handler.setFormatter(logging.Formatter(FILE_FORMAT, DATE_FORMAT))
            logger.addHandler(file_handler)
            logger.debug(f"Logging to {path}")

    return logger


def set_log_account(account_id: Optional[str]) -> None:
    """Retag the package handlers once the run's account is known."""
    for handler in logging.getLogger(LOGGER_NAME).handlers:
        for log_filter in handler.filters:
            if isinstance(log_filter, AccountFilter):
                log_filter.account_id = account_id or NO_ACCOUNT

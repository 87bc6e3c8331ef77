from datetime import datetime
from pytz import timezone
import logging.config
import logging
import os
from logging import Logger

LOGGER_NAME = "catalog_search"

_ANSI_RESET = "\033[0m"
_COLOR_MAP: dict[str, str] = {
    "cyan":    "\033[36m",
    "green":   "\033[32m",
    "yellow":  "\033[33m",
    "red":     "\033[31m",
    "magenta": "\033[35m",
    "blue":    "\033[34m",
    "white":   "\033[37m",
}

# client library loggers, only forwarded in debug mode
_NOISY_LOGGERS = ("httpx", "httpcore", "psycopg", "uvicorn.access")


def is_debug_mode() -> bool:
    return os.getenv("LOG_LEVEL", "info").strip().lower() == "debug"


def _level_prefix(levelno: int) -> str:
    if levelno >= logging.ERROR:
        return "⛔ "
    if levelno == logging.WARNING:
        return "⚠️ "
    return ""


class TimezoneFormatter(logging.Formatter):
    """Renders timestamps in the configured zone and prefixes warnings and errors."""

    def __init__(self, tz_name, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.tz = timezone(tz_name)

    def formatTime(self, record, datefmt=None):
        stamp = datetime.fromtimestamp(record.created, self.tz)
        return stamp.strftime(datefmt) if datefmt else stamp.isoformat()

    def format(self, record):
        try:
            message = record.getMessage()
        except (TypeError, ValueError):
            # malformed format args, keep the raw message instead of crashing the handler
            message = str(record.msg)
        record.msg = _level_prefix(record.levelno) + message
        record.args = ()
        return super().format(record)


class ColoredFormatter(TimezoneFormatter):
    """Console formatter that wraps a line in the ANSI color named by ``record.color``."""

    def format(self, record) -> str:
        line = super().format(record)
        ansi = _COLOR_MAP.get(getattr(record, "color", None) or "", "")
        return f"{ansi}{line}{_ANSI_RESET}" if ansi and line else line


class ColorLogger:
    """Wraps a :class:`logging.Logger` and accepts an optional ``color=`` keyword.

    Usage::

        logger.info("Consumed '%s'.", path)
        logger.info("Ingestion pass complete", color="green")

    Only the console handler renders the color; the log file stays plain text.
    """

    def __init__(self, logger: Logger):
        self._logger = logger

    def _emit(self, level: int, msg, args, color: str | None, kwargs: dict) -> None:
        if color is not None:
            kwargs["extra"] = {**(kwargs.get("extra") or {}), "color": color}
        kwargs.setdefault("stacklevel", 3)
        self._logger.log(level, msg, *args, **kwargs)

    def debug(self, msg, *args, color: str | None = None, **kwargs):
        self._emit(logging.DEBUG, msg, args, color, kwargs)

    def info(self, msg, *args, color: str | None = None, **kwargs):
        self._emit(logging.INFO, msg, args, color, kwargs)

    def warning(self, msg, *args, color: str | None = None, **kwargs):
        self._emit(logging.WARNING, msg, args, color, kwargs)

    def error(self, msg, *args, color: str | None = None, **kwargs):
        self._emit(logging.ERROR, msg, args, color, kwargs)

    def critical(self, msg, *args, color: str | None = None, **kwargs):
        self._emit(logging.CRITICAL, msg, args, color, kwargs)

    def exception(self, msg, *args, color: str | None = None, **kwargs):
        kwargs.setdefault("exc_info", True)
        self._emit(logging.ERROR, msg, args, color, kwargs)

    def log(self, level: int, msg, *args, color: str | None = None, **kwargs):
        self._emit(level, msg, args, color, kwargs)

    def __getattr__(self, name):
        return getattr(self._logger, name)


def _build_config(log_file: str, tz_name: str, level: int) -> dict:
    line_format = "%(asctime)s - %(levelname)s - %(message)s"
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "file": {"()": TimezoneFormatter, "format": line_format, "datefmt": "%Y-%m-%d %H:%M:%S", "tz_name": tz_name},
            "console": {"()": ColoredFormatter, "format": line_format, "datefmt": "%Y-%m-%d %H:%M:%S", "tz_name": tz_name},
        },
        "handlers": {
            "console": {"class": "logging.StreamHandler", "formatter": "console", "level": level, "stream": "ext://sys.stdout"},
            "file": {"class": "logging.FileHandler", "formatter": "file", "level": level, "filename": log_file, "encoding": "utf-8"},
        },
        "root": {"handlers": ["console", "file"], "level": level},
    }


def setup_logging() -> ColorLogger:
    """Configure console and file logging and return the application logger.

    The log file is written to ``$ROOT_DIR/logs/app.log`` (current directory if
    ROOT_DIR is unset); timestamps use ``$TIMEZONE``.
    """
    debug_mode = is_debug_mode()
    level = logging.DEBUG if debug_mode else logging.INFO
    log_dir = os.path.join(os.getenv("ROOT_DIR") or os.getcwd(), "logs")
    os.makedirs(log_dir, exist_ok=True)

    logging.config.dictConfig(
        _build_config(os.path.join(log_dir, "app.log"), os.getenv("TIMEZONE", "Europe/Berlin"), level)
    )
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if debug_mode else logging.WARNING)

    return ColorLogger(logging.getLogger(LOGGER_NAME))

"""Logging setup for newsmerge.

Every module logs under the ``nm`` namespace via ``get_logger``. Only the CLI
calls ``configure_logging``; it attaches handlers to the ``nm`` logger, so an
embedding application keeps full control of the root logger.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from dataclasses import dataclass
from logging.handlers import RotatingFileHandler
from typing import List, Literal

LogOutput = Literal["stdout", "file", "both"]
LogFormat = Literal["text", "json"]

PACKAGE_LOGGER = "nm"
# The feed fetcher goes through requests; its per-connection chatter is noise at INFO
NOISY_LOGGERS = ("urllib3", "charset_normalizer")

_TEXT_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(filename)s:%(lineno)d | %(message)s"


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "name": record.name,
            "file": f"{record.filename}:{record.lineno}",
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


@dataclass(slots=True)
class LogSettings:
    level: str | int
    output: str
    file_path: str
    log_format: str


def resolve_log_settings(
    level: str | int | None = None,
    output: LogOutput | None = None,
    file_path: str | None = None,
    log_format: LogFormat | None = None,
) -> LogSettings:
    """Fill unset options from ``LOG_LEVEL``, ``LOG_OUTPUT``, ``LOG_FILE_PATH`` and ``LOG_FORMAT``.

    Read at call time, after the CLI has loaded ``.env``.
    """
    return LogSettings(
        level=level if level is not None else os.environ.get("LOG_LEVEL", "INFO").upper(),
        output=(output or os.environ.get("LOG_OUTPUT") or "stdout").lower(),
        file_path=file_path or os.environ.get("LOG_FILE_PATH") or "logs/newsmerge.log",
        log_format=(log_format or os.environ.get("LOG_FORMAT") or "text").lower(),
    )


def _handlers(settings: LogSettings) -> List[logging.Handler]:
    handlers: List[logging.Handler] = []
    if settings.output in ("stdout", "both"):
        handlers.append(logging.StreamHandler(sys.stdout))
    if settings.output in ("file", "both"):
        log_dir = os.path.dirname(settings.file_path)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        handlers.append(RotatingFileHandler(settings.file_path, maxBytes=10 * 1024 * 1024, backupCount=5))
    return handlers


def configure_logging(
    level: str | int | None = None,
    output: LogOutput | None = None,
    file_path: str | None = None,
    log_format: LogFormat | None = None,
) -> logging.Logger:
    """Attach handlers to the ``nm`` logger and return it.

    Calling it again replaces the previous handlers.
    """
    settings = resolve_log_settings(level, output, file_path, log_format)
    formatter: logging.Formatter = _JsonFormatter() if settings.log_format == "json" else logging.Formatter(_TEXT_FORMAT)

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(settings.level)
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()
    for handler in _handlers(settings):
        handler.setFormatter(formatter)
        package_logger.addHandler(handler)
    package_logger.propagate = False

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return package_logger


def get_logger(name: str) -> logging.Logger:
    """Return a logger under the ``nm`` namespace."""
    if name != PACKAGE_LOGGER and not name.startswith(PACKAGE_LOGGER + "."):
        name = f"{PACKAGE_LOGGER}.{name}"
    return logging.getLogger(name)

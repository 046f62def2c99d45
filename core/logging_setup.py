"""Logging configuration for the visualizer scripts.

Library modules only create `logging.getLogger(__name__)` loggers; scripts
call setup_logging() once to attach handlers.
"""
import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path

ROOT_LOGGER = "latentviz"
# Top-level packages whose module loggers should share the handlers
PACKAGE_LOGGERS = ("synthetic", "visualization", "animation", "core")


class ColoredConsoleFormatter(logging.Formatter):
    """Console formatter with ANSI color codes for log levels."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[41m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        record = logging.makeLogRecord(record.__dict__)
        color = self.COLORS.get(record.levelname, "")
        record.levelname = f"{color}{record.levelname:8s}{self.RESET}"
        return super().format(record)


class JSONFormatter(logging.Formatter):
    """One JSON object per line; frame/stage extras are carried through."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info and record.exc_info[0]:
            entry["exception"] = self.formatException(record.exc_info)
        for key in ("frame", "stage"):
            if hasattr(record, key):
                entry[key] = getattr(record, key)
        return json.dumps(entry, default=str)


def _configure(logger: logging.Logger, handlers, level):
    logger.setLevel(level)
    logger.handlers.clear()
    for h in handlers:
        logger.addHandler(h)
    logger.propagate = False


def setup_logging(level: int = logging.INFO, log_dir=None, color: bool = True,
                  json_file: bool = False) -> logging.Logger:
    """Attach console (and optionally file) handlers to the project loggers.

    Returns the `latentviz` logger used by the scripts themselves.
    """
    handlers = []

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level)
    fmt = "%(asctime)s │ %(levelname)s │ %(name)s │ %(message)s"
    if color and sys.stderr.isatty():
        console.setFormatter(ColoredConsoleFormatter(fmt=fmt, datefmt="%H:%M:%S"))
    else:
        console.setFormatter(logging.Formatter(fmt=fmt, datefmt="%H:%M:%S"))
    handlers.append(console)

    if log_dir is not None:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_dir / "render.log")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(
            fmt="%(asctime)s | %(levelname)-8s | %(name)s:%(funcName)s:%(lineno)d | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))
        handlers.append(file_handler)
        if json_file:
            json_handler = logging.FileHandler(log_dir / "render.jsonl")
            json_handler.setLevel(logging.DEBUG)
            json_handler.setFormatter(JSONFormatter())
            handlers.append(json_handler)

    logger_level = min(level, logging.DEBUG) if log_dir is not None else level
    for name in (ROOT_LOGGER,) + PACKAGE_LOGGERS:
        _configure(logging.getLogger(name), handlers, logger_level)
    return logging.getLogger(ROOT_LOGGER)

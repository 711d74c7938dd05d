"""
Logging setup for the Infant Health Monitor.

Console output is human-readable (colored on a terminal) unless the
``json`` format is chosen; the optional log file is always JSON lines so
long monitoring sessions can be replayed and filtered by session id.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, MutableMapping, Optional, Tuple

TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
DEFAULT_MAX_BYTES = 10485760  # 10MB
DEFAULT_BACKUP_COUNT = 5


class JSONFormatter(logging.Formatter):
    """
    One JSON object per record.

    Monitoring ticks may run on worker threads, so the thread name is
    included; session context from ``create_logger_with_context`` appears
    under ``context``.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "thread": record.threadName,
            "location": f"{record.module}:{record.funcName}:{record.lineno}",
        }
        context = getattr(record, "context", None)
        if context:
            entry["context"] = context
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class ColoredFormatter(logging.Formatter):
    """Text formatter with ANSI-colored level names."""

    COLORS = {
        "DEBUG": "\033[36m",     # Cyan
        "INFO": "\033[32m",      # Green
        "WARNING": "\033[33m",   # Yellow
        "ERROR": "\033[31m",     # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        # Other handlers share the record, so restore the plain level name
        original = record.levelname
        record.levelname = f"{self.COLORS.get(original, '')}{original}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = original


def _console_handler(log_format: str, colored: bool) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    if log_format == "json":
        handler.setFormatter(JSONFormatter())
    elif colored and sys.stderr.isatty():
        handler.setFormatter(ColoredFormatter(TEXT_FORMAT, DATE_FORMAT))
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT, DATE_FORMAT))
    return handler


def _file_handler(log_file: str, max_bytes: int, backup_count: int) -> logging.Handler:
    path = Path(log_file)
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(path, maxBytes=max_bytes, backupCount=backup_count)
    handler.setFormatter(JSONFormatter())
    return handler


def setup_logging(
    level: str = "INFO",
    log_format: str = "text",
    log_file: Optional[str] = None,
    max_bytes: int = DEFAULT_MAX_BYTES,
    backup_count: int = DEFAULT_BACKUP_COUNT,
    console_enabled: bool = True,
    colored: bool = True,
) -> None:
    """
    Configure the root logger, replacing any existing handlers.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Console format, "text" or "json"
        log_file: Optional rotating JSON log file
        max_bytes: Rotate the log file at this size
        backup_count: Rotated files to keep
        console_enabled: Log to stderr
        colored: Color level names when stderr is a terminal (text only)

    Raises:
        ValueError: If the level or format is unknown
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level}")
    if log_format not in ("text", "json"):
        raise ValueError(f"Unknown log format: {log_format} (expected text or json)")

    root = logging.getLogger()
    root.handlers = []
    root.setLevel(numeric_level)

    if console_enabled:
        root.addHandler(_console_handler(log_format, colored))
    if log_file:
        root.addHandler(_file_handler(log_file, max_bytes, backup_count))


def setup_logging_from_config(section: Dict[str, Any], verbose: bool = False) -> None:
    """Configure logging from the ``logging`` configuration section."""
    setup_logging(
        level="DEBUG" if verbose else section.get("level", "INFO"),
        log_format=section.get("format", "text"),
        log_file=section.get("file"),
        max_bytes=section.get("max_bytes", DEFAULT_MAX_BYTES),
        backup_count=section.get("backup_count", DEFAULT_BACKUP_COUNT),
    )


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


class SessionLoggerAdapter(logging.LoggerAdapter):
    """
    Attaches a fixed context (e.g. the session id) to every record.

    Per-call context passed as ``extra={"context": {...}}`` is merged on
    top of the fixed one.
    """

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> Tuple[Any, MutableMapping[str, Any]]:
        extra = dict(kwargs.get("extra") or {})
        extra["context"] = {**self.extra, **extra.get("context", {})}
        kwargs["extra"] = extra
        return msg, kwargs


def create_logger_with_context(name: str, context: Dict[str, Any]) -> SessionLoggerAdapter:
    """
    Logger whose records all carry ``context``.

    Example:
        logger = create_logger_with_context(
            "infant_monitor.pipeline", {"session_id": "3f2a9c"}
        )
        logger.info("Tick complete")
        # JSON: {"message": "Tick complete", "context": {"session_id": "3f2a9c"}, ...}
    """
    return SessionLoggerAdapter(get_logger(name), context)

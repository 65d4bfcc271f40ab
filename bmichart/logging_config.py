"""
Structured logging for the capture pipeline.

Every record can carry pipeline context: stage, request_id, duration_ms,
error_type. JSON output for production, colored console output for local
development.

Usage:
    from bmichart.logging_config import get_logger, setup_logging

    setup_logging(level="INFO", json_format=False)

    logger = get_logger("bmichart.pipeline")
    logger.info("Chart captured", stage="capture", request_id=request_id)
    logger.error("Navigation failed", error=e, stage="navigate")
"""

import asyncio
import functools
import json
import logging
import sys
import time
from datetime import datetime
from pathlib import Path
from typing import Optional


CONTEXT_FIELDS = (
    "stage", "request_id", "url", "path", "duration_ms", "error_type",
    "system", "gender", "age_months", "attempt",
)


# ============================================================
# FORMATTERS
# ============================================================

class JSONFormatter(logging.Formatter):
    """
    One JSON object per line.

    {
        "timestamp": "2026-10-18T10:30:00.123456",
        "level": "ERROR",
        "logger": "bmichart.pipeline",
        "message": "Selector wait timed out",
        "stage": "locate",
        "request_id": "3f2a...",
        ...
    }
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now().isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for name in CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                log_data[name] = value

        if record.exc_info:
            log_data["error_type"] = record.exc_info[0].__name__
            log_data["error_message"] = str(record.exc_info[1])
            log_data["traceback"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=str)


class ConsoleFormatter(logging.Formatter):
    """Readable colored output for a terminal."""

    COLORS = {
        "DEBUG": "\033[36m",     # Cyan
        "INFO": "\033[32m",      # Green
        "WARNING": "\033[33m",   # Yellow
        "ERROR": "\033[31m",     # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, "")
        timestamp = datetime.now().strftime("%H:%M:%S")

        parts = [f"{color}[{timestamp}] {record.levelname:8}{self.RESET}"]

        stage = getattr(record, "stage", None)
        if stage:
            parts.append(f"[{stage}]")

        request_id = getattr(record, "request_id", None)
        if request_id:
            parts.append(f"({request_id[:8]})")

        parts.append(record.getMessage())

        duration = getattr(record, "duration_ms", None)
        if duration:
            parts.append(f"({format_duration(duration)})")

        text = " ".join(parts)
        if record.exc_info:
            text = f"{text}\n{self.formatException(record.exc_info)}"
        return text


# ============================================================
# CHART LOGGER
# ============================================================

class ChartLogger:
    """
    Thin wrapper over logging.Logger that turns keyword arguments into
    record attributes.
    """

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)

    def _log(self, level: int, msg: str, error: Optional[BaseException] = None, **context):
        self.logger.log(level, msg, exc_info=error, extra=context)

    def debug(self, msg: str, **context):
        self._log(logging.DEBUG, msg, **context)

    def info(self, msg: str, **context):
        self._log(logging.INFO, msg, **context)

    def warning(self, msg: str, error: Optional[BaseException] = None, **context):
        self._log(logging.WARNING, msg, error=error, **context)

    def error(self, msg: str, error: Optional[BaseException] = None, **context):
        self._log(logging.ERROR, msg, error=error, **context)


# ============================================================
# SETUP
# ============================================================

def setup_logging(
    level: str = "INFO",
    log_dir: Optional[Path] = None,
    json_format: bool = True,
    log_filename: str = "bmichart.jsonl",
):
    """
    Configures the root logger.

    Args:
        level: Minimum level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_dir: Directory for a JSON lines file; no file when None
        json_format: JSON on stdout instead of colored text
        log_filename: File name inside log_dir
    """
    numeric_level = getattr(logging, level.upper())
    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(JSONFormatter() if json_format else ConsoleFormatter())
    root_logger.addHandler(console_handler)

    if log_dir:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_dir / log_filename, encoding="utf-8")
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(file_handler)


def get_logger(name: str) -> ChartLogger:
    return ChartLogger(name)


# ============================================================
# DECORATORS
# ============================================================

def log_execution(logger: ChartLogger, stage: Optional[str] = None):
    """
    Logs start, duration and failure of a coroutine.

    A ``request_id`` keyword argument of the wrapped call is copied into the
    log context.

    Usage:
        @log_execution(logger, stage="capture")
        async def capture(source, config, request_id=None):
            ...
    """

    def decorator(func):
        if not asyncio.iscoroutinefunction(func):
            raise TypeError(f"log_execution expects a coroutine function, got {func!r}")

        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            context = {"stage": stage or func.__name__}
            if kwargs.get("request_id"):
                context["request_id"] = kwargs["request_id"]

            start = time.monotonic()
            logger.debug(f"Starting {func.__name__}", **context)
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                duration = (time.monotonic() - start) * 1000
                logger.error(
                    f"{func.__name__} failed: {e}",
                    error_type=type(e).__name__,
                    duration_ms=duration,
                    **context,
                )
                raise
            duration = (time.monotonic() - start) * 1000
            logger.info(f"Finished {func.__name__}", duration_ms=duration, **context)
            return result

        return wrapper

    return decorator


# ============================================================
# UTILITIES
# ============================================================

def format_duration(ms: float) -> str:
    """Formats a duration for humans."""
    if ms < 1000:
        return f"{ms:.0f}ms"
    elif ms < 60000:
        return f"{ms/1000:.1f}s"
    else:
        minutes = int(ms // 60000)
        seconds = (ms % 60000) / 1000
        return f"{minutes}m{seconds:.0f}s"

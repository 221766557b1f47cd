"""
Logging for pixelsmith.

Every line carries the emitting class and the run's correlation id so one pipeline
run (or one swarm resume) can be followed across stages:

    2025-01-01 12:00:00.123 | INFO | Builder | 48273945 | Built /src/App.tsx (2048 chars)
"""

import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, MutableMapping, Optional, Tuple

# Client libraries that log every request at INFO
QUIET_LOGGERS = (
    "httpx",
    "httpcore",
    "openai",
    "anthropic",
    "langchain",
    "langchain_core",
    "langgraph",
    "google",
    "PIL",
    "uvicorn.access",
)


class PipelineFormatter(logging.Formatter):
    """Pipe-separated lines with millisecond timestamps."""

    def formatTime(self, record, datefmt=None):
        stamp = datetime.fromtimestamp(record.created).strftime(datefmt or "%Y-%m-%d %H:%M:%S")
        return f"{stamp}.{int(record.msecs):03d}"

    def format(self, record: logging.LogRecord) -> str:
        line = " | ".join([
            self.formatTime(record, self.datefmt),
            record.levelname,
            getattr(record, "class_name", "-"),
            str(getattr(record, "correlation_id", "-")),
            record.getMessage(),
        ])
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def setup_logging(level: Optional[str] = None, log_file: Optional[str] = None) -> None:
    """
    Configure the root logger once per process.

    Args:
        level: Log level name; defaults to LOG_LEVEL (info)
        log_file: Extra file destination; defaults to LOG_FILE (none)
    """
    level_name = (level or os.getenv("LOG_LEVEL", "info")).upper()
    log_file = log_file or os.getenv("LOG_FILE")

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    formatter = PipelineFormatter()
    for handler in handlers:
        handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level_name)
    for handler in handlers:
        root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    get_logger(__name__, "LoggingConfig").info(
        f"Logging configured: level={level_name}, file={log_file or 'none'}", correlation_id="SYSTEM"
    )


class ContextLogger(logging.LoggerAdapter):
    """
    Adapter that stamps the class name and a per-call correlation id on each record.

    Usage:
        logger = get_logger(__name__, "Surveyor")
        logger.info("Surveyed input 0", correlation_id=state["correlation_id"])
    """

    def __init__(self, name: str, class_name: str):
        super().__init__(logging.getLogger(name), {"class_name": class_name})

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        correlation_id = kwargs.pop("correlation_id", None)
        kwargs["extra"] = {
            **kwargs.get("extra", {}),
            "class_name": self.extra["class_name"],
            "correlation_id": correlation_id or "-",
        }
        return msg, kwargs


def get_logger(name: str, class_name: str = "-") -> ContextLogger:
    return ContextLogger(name, class_name)

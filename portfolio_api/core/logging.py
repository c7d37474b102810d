"""
Logging configuration for the FastAPI application.

JSON lines in production and staging, a plain human-readable format when
DEBUG is on.
"""

import json
import logging
import sys
from typing import Optional

from portfolio_api.core.config import settings


class JSONFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging in production."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON with single-line exception traces."""
        log_data = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            exception_text = self.formatException(record.exc_info)
            log_data["exception"] = exception_text.replace("\n", "\\n")
            exc_type_name: str | None = (
                record.exc_info[0].__name__ if record.exc_info[0] else None
            )
            if exc_type_name:
                log_data["exc_type"] = exc_type_name

        if record.stack_info:
            log_data["stack_info"] = record.stack_info.replace("\n", "\\n")

        if hasattr(record, "extra"):
            log_data.update(record.extra)

        return json.dumps(log_data)


class HealthCheckAccessFilter(logging.Filter):
    """Drop uvicorn access log lines for the health check endpoint."""

    def __init__(self, path: str = "/health"):
        super().__init__()
        self.path = path

    def filter(self, record: logging.LogRecord) -> bool:
        # uvicorn.access args: (client_addr, method, full_path, http_version, status)
        args = record.args
        if isinstance(args, tuple) and len(args) >= 3:
            return str(args[2]).split("?", 1)[0] != self.path
        return True


def setup_logging(log_level: Optional[str] = None) -> None:
    """
    Configure logging for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
                   Falls back to settings.LOG_LEVEL.
    """
    if log_level is None:
        log_level = settings.LOG_LEVEL or ("DEBUG" if settings.DEBUG else "INFO")

    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    if settings.DEBUG:
        formatter = logging.Formatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    else:
        formatter = JSONFormatter(datefmt="%Y-%m-%d %H:%M:%S")

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    # Remove existing handlers to avoid duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    access_logger = logging.getLogger("uvicorn.access")
    access_logger.setLevel(logging.WARNING)
    if not any(isinstance(f, HealthCheckAccessFilter) for f in access_logger.filters):
        access_logger.addFilter(HealthCheckAccessFilter())
    logging.getLogger("uvicorn.error").setLevel(logging.INFO)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)

    logging.info(f"Logging configured with level: {log_level.upper()}")


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance with the given name.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured logger instance
    """
    return logging.getLogger(name)

"""
Structured Logging Setup

Consistent logging configuration across all sheetfig components.
Uses JSON format for structured logs by default.
"""

import logging
import sys
import os
from datetime import datetime, timezone
import json


# LogRecord attributes that are not user-supplied extras
_RESERVED_ATTRS = frozenset((
    "name", "msg", "args", "levelname", "levelno", "pathname",
    "filename", "module", "exc_info", "exc_text", "stack_info",
    "lineno", "funcName", "created", "msecs", "relativeCreated",
    "thread", "threadName", "processName", "process", "service",
    "message", "taskName",
))

ROOT_LOGGER = "sheetfig"


class JsonFormatter(logging.Formatter):
    """JSON log formatter for structured logging"""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "service": getattr(record, "service", "unknown"),
            "message": record.getMessage(),
            "logger": record.name,
        }

        # Add exception info if present
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Add extra fields
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_data[key] = value

        return json.dumps(log_data, default=str)


class ServiceLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that adds component name to all logs"""

    def process(self, msg: str, kwargs: dict) -> tuple[str, dict]:
        kwargs.setdefault("extra", {})
        kwargs["extra"]["service"] = self.extra.get("service", "unknown")
        return msg, kwargs


def setup_logging(
    service_name: str = "",
    log_level: str | None = None,
    json_format: bool | None = None,
) -> logging.Logger:
    """
    Attach a stdout handler to the sheetfig loggers.

    Library code never calls this; until a host application does, sheetfig
    records propagate to the host's own logging configuration.

    Args:
        service_name: Component to configure (e.g., "config.loader"),
            empty for the whole "sheetfig" tree
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL),
            defaults to SHEETFIG_LOG_LEVEL or INFO
        json_format: Use JSON format (True for production, False for dev),
            defaults to SHEETFIG_LOG_FORMAT == "json"

    Returns:
        Configured logger instance
    """
    if log_level is None:
        log_level = os.environ.get("SHEETFIG_LOG_LEVEL", "INFO")
    if json_format is None:
        json_format = os.environ.get("SHEETFIG_LOG_FORMAT", "json").lower() == "json"

    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    name = f"{ROOT_LOGGER}.{service_name}" if service_name else ROOT_LOGGER
    logger = logging.getLogger(name)
    logger.setLevel(numeric_level)

    # Clear existing handlers
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(numeric_level)

    if json_format:
        formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    handler.setFormatter(formatter)
    logger.addHandler(handler)

    # Don't propagate to root logger
    logger.propagate = False

    return logger


def get_service_logger(service_name: str) -> ServiceLoggerAdapter:
    """
    Get a logger adapter with component context.

    The logger is left unconfigured and propagates; see setup_logging().

    Args:
        service_name: Name of the component

    Returns:
        Logger adapter with component name in all logs
    """
    logger = logging.getLogger(f"{ROOT_LOGGER}.{service_name}")
    return ServiceLoggerAdapter(logger, {"service": service_name})

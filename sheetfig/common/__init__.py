"""
Common Utilities

Shared modules used across all components:
- clock.py - Injectable time source
- config.py - Settings dataclass and YAML loading
- exceptions.py - Custom exception classes
- logging_setup.py - Structured logging setup
"""

from .clock import Clock, SystemClock, duration_to_ms, ms_to_iso
from .config import FigSettings, load_settings
from .exceptions import (
    FigError,
    ConfigError,
    SourceError,
    SourceUnreachableError,
    SheetDecodeError,
    MissingFieldError,
    SchemaConflictError,
    FallbackFileError,
    FallbackExhaustedError,
    NotLoadedError,
    ExportError,
)
from .logging_setup import (
    setup_logging,
    get_service_logger,
)

__all__ = [
    # Clock
    "Clock",
    "SystemClock",
    "duration_to_ms",
    "ms_to_iso",
    # Config
    "FigSettings",
    "load_settings",
    # Exceptions
    "FigError",
    "ConfigError",
    "SourceError",
    "SourceUnreachableError",
    "SheetDecodeError",
    "MissingFieldError",
    "SchemaConflictError",
    "FallbackFileError",
    "FallbackExhaustedError",
    "NotLoadedError",
    "ExportError",
    # Logging
    "setup_logging",
    "get_service_logger",
]

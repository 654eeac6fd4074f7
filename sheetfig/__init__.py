"""
sheetfig - remote configuration from a shared spreadsheet

    from sheetfig import Fig

    fig = Fig("https://docs.google.com/spreadsheets/d/<id>/edit?usp=sharing")
    await fig.load()
    fig.get_boolean("feature_enabled", False)
"""

from .common import (
    Clock,
    SystemClock,
    FigSettings,
    load_settings,
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
from .services.config import (
    Fig,
    Snapshot,
    ConfigSource,
    LocalFileSource,
    SheetSource,
    SheetSync,
)

__version__ = "0.1.0"

__all__ = [
    "Fig",
    "Snapshot",
    "ConfigSource",
    "LocalFileSource",
    "SheetSource",
    "SheetSync",
    "Clock",
    "SystemClock",
    "FigSettings",
    "load_settings",
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
]

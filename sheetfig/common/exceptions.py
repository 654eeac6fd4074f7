"""
Custom Exception Classes for sheetfig

Hierarchical exception structure shared by the loader, export and engine.
Typed accessors never raise; only load and export failures surface here.
"""


class FigError(Exception):
    """Base exception for all sheetfig errors"""

    def __init__(self, message: str, recoverable: bool = True):
        self.message = message
        self.recoverable = recoverable
        super().__init__(message)


class ConfigError(FigError):
    """Engine misconfiguration (e.g. no sheet URL to load from)"""

    def __init__(self, message: str):
        super().__init__(f"Config Error: {message}", recoverable=False)


class SourceError(FigError):
    """A single configuration source failed to produce rows"""

    def __init__(self, message: str, source: str | None = None):
        self.source = source
        super().__init__(message, recoverable=True)


class SourceUnreachableError(SourceError):
    """Transport failure or non-2xx response from a source"""

    def __init__(
        self,
        message: str,
        source: str | None = None,
        status_code: int | None = None,
    ):
        self.status_code = status_code
        super().__init__(message, source)


class SheetDecodeError(SourceError):
    """Response could not be decoded as a key/value sheet"""


class MissingFieldError(SheetDecodeError):
    """A required column value was missing in one row"""

    def __init__(self, field: str, index: int, source: str | None = None):
        self.field = field
        self.index = index
        super().__init__(f"Required value '{field}' missing at $[{index}]", source)


class SchemaConflictError(SourceError):
    """The sheet mixes value types in one column"""

    def __init__(self, source: str | None = None):
        super().__init__(
            "You can't use multiple data types in one column. "
            "Use `=TO_TEXT()` to convert non-string values in your sheet",
            source,
        )


class FallbackFileError(SourceError):
    """Local fallback file missing or not parseable"""

    def __init__(self, message: str, path: str):
        self.path = path
        super().__init__(message, source=path)


class FallbackExhaustedError(FigError):
    """Primary source and every fallback failed"""

    def __init__(self, errors: list[tuple[str, Exception]]):
        self.errors = errors
        reasons = "; ".join(f"{name}: {error}" for name, error in errors)
        if len(errors) > 1:
            message = f"Failed to load from primary source and all fallbacks. {reasons}"
        else:
            message = f"Failed to load configuration. {reasons}"
        super().__init__(message, recoverable=False)

    @property
    def primary_error(self) -> Exception | None:
        return self.errors[0][1] if self.errors else None


class NotLoadedError(FigError):
    """Operation needs a loaded snapshot"""

    def __init__(self, message: str = "Configuration not loaded. Call load() first."):
        super().__init__(message, recoverable=True)


class ExportError(FigError):
    """Writing the export file failed"""

    def __init__(self, message: str, path: str):
        self.path = path
        super().__init__(message, recoverable=True)

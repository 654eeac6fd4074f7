"""
Fig - Remote Configuration Engine

Responsible for:
- Loading key/value configuration from a shared sheet
- Falling back to local JSON files when the sheet is unavailable
- Typed, defaulted accessors that never raise
- TTL-driven background refreshes that never block readers
- Exporting the current snapshot as a future fallback file
"""

from collections.abc import Sequence
from datetime import timedelta
from pathlib import Path
from typing import Any

from sheetfig.common.clock import Clock, SystemClock, ms_to_iso
from sheetfig.common.config import FigSettings
from sheetfig.common.exceptions import ConfigError, NotLoadedError
from sheetfig.common.logging_setup import get_service_logger

from . import coercion
from .cache import ConfigCache, Snapshot
from .export import LocalConfigFile
from .loader import ConfigSource, SourceLoader, resolve_source
from .refresh import TTLRefresher
from .sync import SheetSync

logger = get_service_logger("config")

Locator = str | Path | ConfigSource
TTL = timedelta | float | int


class Fig:
    """
    Remote configuration client.

    Usage:
        fig = Fig(
            "https://docs.google.com/spreadsheets/d/<id>/edit?usp=sharing",
            local_fallback_path="config-backup.json",
        )
        await fig.load()
        fig.get_string("app_name", "Default App")
        fig.get_int("max_retries", 3, ttl=timedelta(minutes=5))
    """

    def __init__(
        self,
        sheet_url: Locator | None = None,
        local_fallback_path: str | Path | None = None,
        *,
        fallbacks: Sequence[Locator] = (),
        clock: Clock | None = None,
        sheet_sync: SheetSync | None = None,
    ):
        """
        Args:
            sheet_url: Sheet share link (or any ConfigSource) loaded first
            local_fallback_path: JSON file tried first when the sheet fails
            fallbacks: Further fallback locators, tried in order
            clock: Time source (defaults to the system clock)
            sheet_sync: Sheet transport (defaults to SheetSync())
        """
        self.sheet_sync = sheet_sync or SheetSync()
        self.clock = clock or SystemClock()

        self._primary: ConfigSource | None = (
            resolve_source(sheet_url, self.sheet_sync) if sheet_url is not None else None
        )

        chain: list[Locator] = []
        if local_fallback_path is not None:
            chain.append(local_fallback_path)
        chain.extend(fallbacks)
        self._fallbacks: list[ConfigSource] = [
            resolve_source(locator, self.sheet_sync) for locator in chain
        ]

        # Primary used by the last explicit load; refreshes reuse it
        # only when none was configured at construction.
        self._last_primary: ConfigSource | None = None

        self.cache = ConfigCache()
        self.loader = SourceLoader()
        self.refresher = TTLRefresher(self._background_reload, self.clock)

    @classmethod
    def from_settings(cls, settings: FigSettings, **kwargs: Any) -> "Fig":
        """Build an engine from FigSettings"""
        sheet_sync = kwargs.pop("sheet_sync", None) or SheetSync(
            sheet_name=settings.sheet_name,
            key_column=settings.key_column,
            value_column=settings.value_column,
            timeout_s=settings.request_timeout_s,
        )
        return cls(
            settings.sheet_url,
            fallbacks=settings.fallback_paths,
            sheet_sync=sheet_sync,
            **kwargs,
        )

    # ============================================
    # LIFECYCLE
    # ============================================

    async def load(self, sheet_url: Locator | None = None) -> None:
        """
        Load configuration; must be awaited before reads return real values.

        Args:
            sheet_url: Override the configured primary for this call

        Raises:
            ConfigError: no sheet URL configured or passed
            FallbackExhaustedError: sheet and every fallback failed
        """
        if sheet_url is not None:
            primary = resolve_source(sheet_url, self.sheet_sync)
        elif self._primary is not None:
            primary = self._primary
        else:
            raise ConfigError(
                "Sheet URL not provided in constructor. Use Fig(sheet_url) or load(sheet_url)"
            )

        self._last_primary = primary
        await self._load_from(primary)

    async def _load_from(self, primary: ConfigSource) -> None:
        snapshot = await self.loader.load(primary, self._fallbacks)
        loaded_at = self.clock.now()
        self.cache.replace(snapshot, loaded_at)

        logger.info(
            f"Configuration loaded ({len(snapshot)} values)",
            extra={"value_count": len(snapshot), "loaded_at": ms_to_iso(loaded_at)},
        )

    async def _background_reload(self) -> None:
        """Full reload with the construction-time sources"""
        primary = self._primary or self._last_primary
        if primary is None:
            raise ConfigError("No source to refresh from")
        await self._load_from(primary)

    async def close(self) -> None:
        """Wait for outstanding background refreshes and stop new ones"""
        await self.refresher.close()

    async def __aenter__(self) -> "Fig":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    # ============================================
    # STATE
    # ============================================

    @property
    def is_loaded(self) -> bool:
        return self.cache.is_loaded()

    @property
    def loaded_at(self) -> int | None:
        """Epoch-ms time the current snapshot was loaded"""
        return self.cache.loaded_at

    def get_all(self) -> dict[str, Any] | None:
        """
        All loaded configuration values.

        Returns:
            Copy of the key/value mapping, or None before a successful load
        """
        snapshot = self.cache.read()
        return snapshot.to_dict() if snapshot is not None else None

    def export_to_local_file(self, file_path: str | Path) -> None:
        """
        Write the current snapshot to a JSON file usable as a fallback.

        Raises:
            NotLoadedError: nothing loaded yet
            ExportError: the file could not be written
        """
        snapshot = self.cache.current_snapshot()
        if snapshot is None:
            raise NotLoadedError()
        LocalConfigFile(file_path).write(snapshot)

    # ============================================
    # TYPED ACCESSORS
    # ============================================

    def _get(self, key: str, default: Any, ttl: TTL | None, coerce) -> Any:
        snapshot = self.cache.read()
        if snapshot is None:
            return default

        value = coerce(snapshot.value(key), default)

        if ttl is not None:
            self.refresher.touch(key, ttl)

        return value

    def get_string(self, key: str, default: str | None = None, ttl: TTL | None = None) -> str | None:
        return self._get(key, default, ttl, coercion.coerce_string)

    def get_int(self, key: str, default: int | None = None, ttl: TTL | None = None) -> int | None:
        """Value rounded half-up to a 32-bit integer ("25.7" -> 26)"""
        return self._get(key, default, ttl, coercion.coerce_int)

    def get_long(self, key: str, default: int | None = None, ttl: TTL | None = None) -> int | None:
        """Value rounded half-up to a 64-bit integer"""
        return self._get(key, default, ttl, coercion.coerce_long)

    def get_float(self, key: str, default: float | None = None, ttl: TTL | None = None) -> float | None:
        return self._get(key, default, ttl, coercion.coerce_float)

    def get_double(self, key: str, default: float | None = None, ttl: TTL | None = None) -> float | None:
        return self._get(key, default, ttl, coercion.coerce_double)

    def get_boolean(self, key: str, default: bool | None = None, ttl: TTL | None = None) -> bool | None:
        """Only "true"/"false" (any case) are booleans; anything else -> default"""
        return self._get(key, default, ttl, coercion.coerce_boolean)

    def __repr__(self) -> str:
        state = f"{len(self.cache.current_snapshot())} values" if self.is_loaded else "unloaded"
        return f"Fig({state})"


__all__ = ["Fig", "Snapshot"]

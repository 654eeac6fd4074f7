"""
Source Loader

Loads a snapshot from the primary source, walking an ordered fallback
chain when the primary fails. The first source that succeeds supplies
the snapshot; if none does, every failure is reported together.
"""

from collections.abc import Sequence
from pathlib import Path
from typing import Any

from sheetfig.common.exceptions import (
    FallbackExhaustedError,
    MissingFieldError,
    SchemaConflictError,
    SourceError,
)
from sheetfig.common.logging_setup import get_service_logger

from .cache import Snapshot
from .export import LocalConfigFile
from .sync import SheetSync

logger = get_service_logger("config.loader")


class ConfigSource:
    """A place configuration rows can be loaded from"""

    name: str = "source"

    async def fetch(self) -> list[tuple[str, Any]]:
        """
        Return ordered (key, raw value) rows.

        Raises:
            SourceError: the source could not produce rows
        """
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"


class SheetSource(ConfigSource):
    """Rows from a shared spreadsheet"""

    def __init__(self, url: str, sync: SheetSync | None = None):
        self.url = url
        self.name = url
        self.sync = sync or SheetSync()

    async def fetch(self) -> list[tuple[str, Any]]:
        try:
            return await self.sync.fetch_rows(self.url)
        except MissingFieldError as e:
            if e.field == "key":
                raise SchemaConflictError(source=self.url) from e
            raise


class LocalFileSource(ConfigSource):
    """Rows from a local JSON file (export format)"""

    def __init__(self, path: str | Path):
        self.file = LocalConfigFile(path)
        self.name = str(self.file.path)

    async def fetch(self) -> list[tuple[str, Any]]:
        return list(self.file.read().items())


def resolve_source(
    locator: "str | Path | ConfigSource",
    sync: SheetSync | None = None,
) -> ConfigSource:
    """
    Turn a locator into a source.

    http(s) URLs become sheet sources, other strings and paths become
    local file sources; ConfigSource instances pass through.
    """
    if isinstance(locator, ConfigSource):
        return locator
    if isinstance(locator, str) and locator.startswith(("http://", "https://")):
        return SheetSource(locator, sync)
    return LocalFileSource(locator)


class SourceLoader:
    """Loads snapshots from a primary source and its fallbacks"""

    async def load(
        self,
        primary: ConfigSource,
        fallbacks: Sequence[ConfigSource] = (),
    ) -> Snapshot:
        """
        Load a snapshot.

        Args:
            primary: Source tried first
            fallbacks: Sources tried in order after the primary fails

        Returns:
            Snapshot of the first source that succeeded

        Raises:
            FallbackExhaustedError: primary and all fallbacks failed
        """
        errors: list[tuple[str, Exception]] = []

        try:
            snapshot = await self._load_source(primary)
            logger.info(
                f"Loaded {len(snapshot)} configuration values from {primary.name}",
                extra={"source": primary.name, "value_count": len(snapshot)},
            )
            return snapshot
        except Exception as e:
            logger.warning(f"Failed to load from primary source {primary.name}: {e}")
            errors.append((primary.name, e))

        for fallback in fallbacks:
            try:
                snapshot = await self._load_source(fallback)
            except Exception as e:
                logger.warning(f"Failed to load from fallback {fallback.name}: {e}")
                errors.append((fallback.name, e))
                continue

            logger.info(
                f"Successfully loaded from fallback: {fallback.name}",
                extra={"source": fallback.name, "value_count": len(snapshot)},
            )
            return snapshot

        raise FallbackExhaustedError(errors) from errors[0][1]

    async def _load_source(self, source: ConfigSource) -> Snapshot:
        rows = await source.fetch()
        try:
            return Snapshot.from_rows(rows)
        except TypeError as e:
            raise SourceError(str(e), source.name) from e

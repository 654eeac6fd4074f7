"""
Configuration Cache

In-memory store for the current configuration snapshot.
A snapshot is replaced wholesale by each successful load and never
mutated in place, so readers can hold a reference without locking.
"""

import threading
from collections.abc import Iterable, Iterator, Mapping
from types import MappingProxyType
from typing import Any

from sheetfig.common.clock import ms_to_iso
from sheetfig.common.logging_setup import get_service_logger

from .values import ABSENT, ConfigValue, from_raw, to_raw

logger = get_service_logger("config.cache")


class Snapshot(Mapping):
    """
    Immutable mapping of configuration key to ConfigValue.

    Built from ordered (key, value) rows; a key that appears more than
    once keeps its last value.
    """

    def __init__(self, values: Mapping[str, ConfigValue] | None = None):
        self._values = MappingProxyType(dict(values or {}))

    @classmethod
    def from_rows(cls, rows: Iterable[tuple[str, Any]]) -> "Snapshot":
        values: dict[str, ConfigValue] = {}
        for key, raw in rows:
            values[key] = from_raw(raw)
        return cls(values)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Snapshot":
        return cls.from_rows(data.items())

    def __getitem__(self, key: str) -> ConfigValue:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def value(self, key: str) -> ConfigValue:
        """Stored value for key, ABSENT when missing"""
        return self._values.get(key, ABSENT)

    def to_dict(self) -> dict[str, Any]:
        """Plain-Python copy of the snapshot"""
        return {key: to_raw(value) for key, value in self._values.items()}

    def __repr__(self) -> str:
        return f"Snapshot({len(self._values)} keys)"


class ConfigCache:
    """
    Holds the current snapshot and the time it became current.

    States:
    - unloaded: no snapshot
    - loaded: exactly one snapshot + load timestamp
    """

    def __init__(self):
        self._lock = threading.Lock()
        # (snapshot, loaded_at) published as one tuple; readers skip the lock
        self._current: tuple[Snapshot, int] | None = None

    def current_snapshot(self) -> Snapshot | None:
        """Latest successfully loaded snapshot, or None before any load"""
        current = self._current
        return current[0] if current else None

    def is_loaded(self) -> bool:
        return self._current is not None

    @property
    def loaded_at(self) -> int | None:
        """Epoch-ms timestamp of the current snapshot"""
        current = self._current
        return current[1] if current else None

    def read(self) -> Snapshot | None:
        """
        Snapshot for an accessor read.

        Reading while unloaded is not an error: callers fall back to
        their defaults, and a warning is logged.
        """
        snapshot = self.current_snapshot()
        if snapshot is None:
            logger.warning("Fig.load() not called, failed or not completed yet")
        return snapshot

    def replace(self, snapshot: Snapshot, timestamp: int) -> None:
        """Swap in a new snapshot together with its load timestamp"""
        with self._lock:
            self._current = (snapshot, timestamp)

        logger.debug(
            f"Snapshot replaced ({len(snapshot)} values)",
            extra={"loaded_at": ms_to_iso(timestamp), "value_count": len(snapshot)},
        )

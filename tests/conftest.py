import asyncio
import json
import threading

import pytest

from sheetfig.common.clock import Clock
from sheetfig.common.exceptions import SourceUnreachableError
from sheetfig.services.config.loader import ConfigSource


class FakeClock(Clock):
    """Manually advanced clock (milliseconds)"""

    def __init__(self, start: int = 0):
        self.current = start

    def now(self) -> int:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += int(round(seconds * 1000))


class StubSource(ConfigSource):
    """In-memory source that counts fetches and can fail or block"""

    def __init__(self, rows=None, name: str = "stub", error: Exception | None = None):
        self.rows = list(rows or [])
        self.name = name
        self.error = error
        self.calls = 0
        self.gate: asyncio.Event | None = None
        # For fetches running on another thread's event loop
        self.thread_gate: threading.Event | None = None

    async def fetch(self):
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.thread_gate is not None:
            await asyncio.to_thread(self.thread_gate.wait)
        if self.error is not None:
            raise self.error
        return list(self.rows)


def unreachable(name: str = "https://sheet.invalid/") -> StubSource:
    return StubSource(name=name, error=SourceUnreachableError("Connection failed", source=name))


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fallback_file(tmp_path):
    path = tmp_path / "fallback.json"
    path.write_text(json.dumps({
        "app_name": "Fallback App",
        "version_code": 123,
        "is_enabled": True,
        "timeout": 45.5,
    }))
    return path

import asyncio
import math
import threading
from datetime import timedelta

import pytest

from conftest import FakeClock, StubSource
from sheetfig.common.clock import duration_to_ms
from sheetfig.common.exceptions import SourceUnreachableError
from sheetfig.services.config import Fig
from sheetfig.services.config.refresh import TTLRefresher

TTL = timedelta(seconds=5)


async def _noop() -> None:
    return None


def test_first_read_is_fresh_and_records_expiry(clock):
    refresher = TTLRefresher(_noop, clock)

    assert refresher.touch("k", TTL) is False
    assert refresher.expiry_for("k", TTL) == 5000


def test_sliding_window_extends_expiry(clock):
    refresher = TTLRefresher(_noop, clock)
    refresher.touch("k", TTL)

    clock.advance(4)
    assert refresher.touch("k", TTL) is False
    assert refresher.expiry_for("k", TTL) == 9000

    clock.advance(4)
    assert refresher.touch("k", TTL) is False
    assert refresher.refresh_count == 0


def test_same_key_different_ttls_tracked_separately(clock):
    refresher = TTLRefresher(_noop, clock)
    refresher.touch("k", 5)
    refresher.touch("k", 60)

    assert refresher.expiry_for("k", 5) == 5000
    assert refresher.expiry_for("k", 60) == 60000


@pytest.mark.asyncio
async def test_expired_read_triggers_exactly_one_refresh(clock):
    source = StubSource([("k", "v1"), ("other", "x")])
    fig = Fig(source, clock=clock)
    await fig.load()
    assert source.calls == 1

    assert fig.get_string("k", ttl=TTL) == "v1"
    assert fig.get_string("other", ttl=timedelta(seconds=1)) == "x"

    source.rows = [("k", "v2"), ("other", "y")]
    source.gate = asyncio.Event()

    # t=6: expired, stale value served, one refresh scheduled
    clock.advance(6)
    assert fig.get_string("k", ttl=TTL) == "v1"
    await asyncio.sleep(0)
    assert source.calls == 2
    assert fig.refresher.is_refreshing

    # t=6.1: refresh still in flight; another expired call site must not start one
    clock.advance(0.1)
    assert fig.get_string("k", ttl=TTL) == "v1"
    assert fig.get_string("other", ttl=timedelta(seconds=1)) == "x"
    await asyncio.sleep(0)
    assert source.calls == 2
    assert fig.refresher.refresh_count == 1

    source.gate.set()
    await fig.close()

    assert not fig.refresher.is_refreshing
    assert fig.get_string("k") == "v2"
    assert fig.loaded_at == 6100


@pytest.mark.asyncio
async def test_failed_refresh_keeps_snapshot_and_clears_flag(clock):
    source = StubSource([("k", "v1")])
    fig = Fig(source, clock=clock)
    await fig.load()
    fig.get_string("k", ttl=TTL)

    source.error = SourceUnreachableError("down", source="stub")
    clock.advance(10)
    fig.get_string("k", ttl=TTL)
    await fig.close()

    assert source.calls == 2
    assert not fig.refresher.is_refreshing
    assert fig.get_all() == {"k": "v1"}
    assert fig.loaded_at == 0


@pytest.mark.asyncio
async def test_refresh_uses_fallbacks_from_construction(clock, fallback_file):
    source = StubSource([("app_name", "Sheet App")])
    fig = Fig(source, local_fallback_path=fallback_file, clock=clock)
    await fig.load()
    fig.get_string("app_name", ttl=TTL)

    source.error = SourceUnreachableError("down", source="stub")
    clock.advance(10)
    assert fig.get_string("app_name", ttl=TTL) == "Sheet App"
    await fig.close()

    assert fig.get_string("app_name") == "Fallback App"


@pytest.mark.asyncio
async def test_read_without_ttl_never_refreshes(clock):
    source = StubSource([("k", "v1")])
    fig = Fig(source, clock=clock)
    await fig.load()

    fig.get_string("k")
    clock.advance(3600)
    fig.get_string("k")
    await fig.close()

    assert source.calls == 1
    assert fig.refresher.refresh_count == 0


@pytest.mark.asyncio
async def test_no_refresh_after_close(clock):
    source = StubSource([("k", "v1")])
    fig = Fig(source, clock=clock)
    await fig.load()
    fig.get_string("k", ttl=TTL)
    await fig.close()

    clock.advance(10)
    assert fig.get_string("k", ttl=TTL) == "v1"
    assert fig.refresher.refresh_count == 0


def test_refresh_without_running_loop_uses_worker_thread():
    clock = FakeClock()
    source = StubSource([("k", "v1")])
    fig = Fig(source, clock=clock)
    asyncio.run(fig.load())

    fig.get_int("k", ttl=TTL)
    source.rows = [("k", "42")]
    clock.advance(6)
    assert fig.get_string("k", ttl=TTL) == "v1"

    asyncio.run(fig.close())

    assert source.calls == 2
    assert fig.get_int("k") == 42
    assert fig.refresher.pending_refreshes == 0


def test_unbounded_duration_has_no_millisecond_value():
    assert duration_to_ms(math.inf) is None
    assert duration_to_ms(float("nan")) is None
    assert duration_to_ms(timedelta(milliseconds=1500)) == 1500
    assert duration_to_ms(-3) == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("ttl", [math.inf, float("nan")])
async def test_unbounded_ttl_reads_stay_fresh(clock, ttl):
    source = StubSource([("k", "v1")])
    fig = Fig(source, clock=clock)
    await fig.load()

    assert fig.get_string("k", ttl=ttl) == "v1"
    clock.advance(10 ** 6)
    assert fig.get_string("k", ttl=ttl) == "v1"
    assert fig.get_int("k", 5, ttl=ttl) == 5
    await fig.close()

    assert fig.refresher.expiry_for("k", ttl) is None
    assert fig.refresher.refresh_count == 0
    assert source.calls == 1


def test_concurrent_expired_reads_from_threads_start_one_refresh():
    clock = FakeClock()
    source = StubSource([("k", "v1")])
    fig = Fig(source, clock=clock)
    asyncio.run(fig.load())
    fig.get_string("k", ttl=TTL)

    source.rows = [("k", "v2")]
    source.thread_gate = threading.Event()
    clock.advance(6)

    readers = 8
    barrier = threading.Barrier(readers)
    results = []

    def read():
        barrier.wait()
        results.append(fig.get_string("k", ttl=TTL))

    threads = [threading.Thread(target=read) for _ in range(readers)]
    try:
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=5)

        assert results == ["v1"] * readers
        assert fig.refresher.refresh_count == 1
        assert fig.refresher.is_refreshing
    finally:
        source.thread_gate.set()
        asyncio.run(fig.close())

    assert source.calls == 2
    assert not fig.refresher.is_refreshing
    assert fig.get_string("k") == "v2"

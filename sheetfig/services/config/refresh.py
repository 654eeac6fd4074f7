"""
TTL Refresh Engine

Per call-site expiry tracking for typed reads with a TTL.

Each (key, ttl) pair has its own sliding expiry: every read pushes the
deadline to now + ttl. A read past its deadline starts one background
reload and still returns the current value; while a reload is in flight
further expiries are ignored, so concurrent readers never stack reloads.

Reloads run as asyncio tasks when the reading thread has a running
event loop, otherwise on a single worker thread.
"""

import asyncio
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import timedelta
from typing import Awaitable, Callable

from sheetfig.common.clock import Clock, duration_to_ms
from sheetfig.common.logging_setup import get_service_logger

logger = get_service_logger("config.refresh")

CallSiteKey = tuple[str, int]


class TTLRefresher:
    """
    Decides when TTL reads trigger a reload, and runs the reload.

    Attributes:
        refresh_count: Number of reloads started (for observability)
    """

    def __init__(
        self,
        reload: Callable[[], Awaitable[None]],
        clock: Clock,
    ):
        """
        Args:
            reload: Coroutine function performing a full reload
            clock: Time source for expiry bookkeeping
        """
        self._reload = reload
        self._clock = clock

        # Guards _expiries and _refreshing
        self._lock = threading.Lock()
        self._expiries: dict[CallSiteKey, int] = {}
        self._refreshing = False
        self._closed = False

        self._tasks: set[asyncio.Task] = set()
        self._futures: set[Future] = set()
        self._executor: ThreadPoolExecutor | None = None

        self.refresh_count = 0

    @property
    def is_refreshing(self) -> bool:
        return self._refreshing

    @property
    def pending_refreshes(self) -> int:
        """Reloads scheduled or running, across tasks and worker threads"""
        return len(self._tasks) + len(self._futures)

    def expiry_for(self, key: str, ttl: timedelta | float) -> int | None:
        """Next expiry (epoch ms) recorded for a call site"""
        ttl_ms = duration_to_ms(ttl)
        if ttl_ms is None:
            return None
        with self._lock:
            return self._expiries.get((key, ttl_ms))

    def touch(self, key: str, ttl: timedelta | float) -> bool:
        """
        Record a TTL read and start a reload if the call site expired.

        Args:
            key: Configuration key that was read
            ttl: Requested time-to-live

        Returns:
            True if this read started a background reload
        """
        ttl_ms = duration_to_ms(ttl)
        if ttl_ms is None:
            # Unbounded TTL never expires
            return False
        call_site = (key, ttl_ms)
        now = self._clock.now()
        start = False

        with self._lock:
            expiry = self._expiries.get(call_site)
            if expiry is not None and now >= expiry:
                if not self._refreshing and not self._closed:
                    self._refreshing = True
                    self.refresh_count += 1
                    start = True
            # Sliding window: every read extends freshness
            self._expiries[call_site] = now + ttl_ms

        if start:
            logger.debug(
                f"TTL expired for '{key}', starting background refresh",
                extra={"key": key, "ttl_ms": ttl_ms},
            )
            self._launch()

        return start

    def _launch(self) -> None:
        """Schedule one reload (caller has set _refreshing)"""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        coro = self._run()
        try:
            if loop is not None:
                task = loop.create_task(coro)
                self._tasks.add(task)
                task.add_done_callback(self._tasks.discard)
            else:
                if self._executor is None:
                    self._executor = ThreadPoolExecutor(
                        max_workers=1, thread_name_prefix="sheetfig-refresh"
                    )
                future = self._executor.submit(asyncio.run, coro)
                self._futures.add(future)
                future.add_done_callback(self._futures.discard)
        except RuntimeError as e:
            coro.close()
            logger.warning(f"Could not schedule background refresh: {e}")
            self._finish()

    async def _run(self) -> None:
        """Run one reload; failures are logged, never raised"""
        try:
            await self._reload()
            logger.debug("Background refresh completed")
        except Exception as e:
            logger.warning(f"Background refresh failed, keeping current snapshot: {e}")
        finally:
            self._finish()

    def _finish(self) -> None:
        with self._lock:
            self._refreshing = False

    async def close(self) -> None:
        """Stop starting reloads and wait for outstanding ones"""
        with self._lock:
            self._closed = True

        loop = asyncio.get_running_loop()
        pending = [task for task in self._tasks if task.get_loop() is loop]
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        if self._executor is not None:
            executor = self._executor
            self._executor = None
            await asyncio.to_thread(executor.shutdown, True)

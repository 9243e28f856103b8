"""Background eviction of records nobody is asking for anymore.

A single timer is kept for the nearest known expiry across all records
(``updated_at + max_age_hint * purge_age_factor``). When it fires, the store
is swept in chunks, expired records are evicted, and the timer is re-armed for
the nearest survivor. With nothing left to expire the scheduler stays idle
until the next write re-arms it.
"""

from __future__ import annotations

import asyncio
from typing import Any

from loguru import logger

from cached_lookup.events import EventEmitter
from cached_lookup.store import ValueStore, now_ms
from cached_lookup.types import ValueRecord

# Timers may fire up to the loop's clock resolution early
_MIN_DELAY_S = 0.001


class PurgeScheduler:
    """Single-timer purge scheduler over a ValueStore."""

    def __init__(
        self,
        store: ValueStore,
        emitter: EventEmitter,
        *,
        age_factor: float,
        chunk_size: int,
    ) -> None:
        self._store = store
        self._emitter = emitter
        self._age_factor = age_factor
        self._chunk_size = chunk_size
        self._timer: asyncio.TimerHandle | None = None
        self._wake_at: float | None = None
        self._sweep_task: asyncio.Task[int] | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._closed = False

    @property
    def wake_at(self) -> float | None:
        """Unix time (ms) of the next scheduled sweep, or None when idle."""
        return self._wake_at

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def sweeping(self) -> bool:
        return self._sweep_task is not None and not self._sweep_task.done()

    def track(self, record: ValueRecord[Any]) -> None:
        """Make sure a sweep is due no later than record's expiry."""
        expires_at = record.expires_at(self._age_factor)
        if expires_at is not None:
            self._schedule(expires_at)

    def cancel(self) -> None:
        """Drop the pending timer and abort a running sweep."""
        if self._timer is not None:
            self._timer.cancel()
        self._timer = None
        self._wake_at = None
        if self._sweep_task is not None and not self._sweep_task.done():
            self._sweep_task.cancel()
        self._sweep_task = None

    def close(self) -> None:
        """Cancel pending work and stop scheduling new sweeps for good."""
        self.cancel()
        self._closed = True

    async def sweep(self) -> int:
        """Evict every expired record and re-arm for the nearest survivor.

        Returns the number of evicted records.
        """
        evicted = 0
        nearest: float | None = None

        for index, key in enumerate(self._store.keys()):
            if index and index % self._chunk_size == 0:
                await asyncio.sleep(0)

            # Re-read: the record may have been replaced or removed meanwhile
            record = self._store.peek(key)
            if record is None:
                continue
            expires_at = record.expires_at(self._age_factor)
            if expires_at is None:
                continue

            if now_ms() > expires_at:
                self._store.evict(key)
                evicted += 1
                self._emitter.emit("purge", record.value, record.args)
            elif nearest is None or expires_at < nearest:
                nearest = expires_at

        logger.debug(
            f"Purge sweep evicted {evicted} record(s), {len(self._store)} remain"
        )
        if nearest is not None:
            self._schedule(nearest)
        return evicted

    def _schedule(self, wake_at: float) -> None:
        if self._closed:
            return

        loop = asyncio.get_running_loop()
        if self._loop is not loop:
            # State left behind by a previous event loop can never fire
            self._timer = None
            self._wake_at = None
            self._sweep_task = None
            self._loop = loop

        if self._timer is not None and self._wake_at is not None:
            if self._wake_at <= wake_at:
                return
            self._timer.cancel()

        # Expiry is exclusive: wake one millisecond past it
        delay = max(_MIN_DELAY_S, (wake_at + 1 - now_ms()) / 1000)
        self._timer = loop.call_later(delay, self._wake)
        self._wake_at = wake_at
        logger.debug(f"Purge sweep scheduled in {delay * 1000:.0f}ms")

    def _wake(self) -> None:
        self._timer = None
        self._wake_at = None
        if self.sweeping:
            # Records written mid-sweep are not in its key snapshot; retry
            self._schedule(now_ms())
            return
        self._sweep_task = asyncio.get_running_loop().create_task(self.sweep())

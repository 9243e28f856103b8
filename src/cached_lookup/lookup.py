"""CachedLookup - per-argument memoization of a slow lookup function.

Provides:
- CachedLookup[R]: cache facade with cached(), rolling() and fresh() reads
- @cached_lookup: decorator turning a function into a CachedLookup
- expire(), in_flight(), updated_at(), get(), clear(): bookkeeping
- on(), once(), off(): "purge" and "fresh" observers
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from functools import update_wrapper
from typing import Any, Generic, TypeVar

from loguru import logger

from cached_lookup.duration import parse_duration
from cached_lookup.events import EventEmitter, Listener
from cached_lookup.in_flight import InFlightCoordinator
from cached_lookup.keys import encode_key
from cached_lookup.purge import PurgeScheduler
from cached_lookup.store import ValueStore
from cached_lookup.types import (
    Argument,
    Duration,
    Event,
    LookupKey,
    LookupOptions,
    Producer,
    ValueRecord,
)

R = TypeVar("R")


def _resolved(value: R) -> asyncio.Future[R]:
    future: asyncio.Future[R] = asyncio.get_running_loop().create_future()
    future.set_result(value)
    return future


class CachedLookup(Generic[R]):
    """Cache the results of producer per distinct argument set.

    Usage:
        lookup = CachedLookup(fetch_user)
        user = await lookup.cached("5s", "123")   # at most 5 seconds old
        user = await lookup.rolling(5000, "123")  # stale-while-revalidate
        user = await lookup.fresh("123")          # always calls fetch_user

    Reads validate their arguments synchronously and return an awaitable, so
    they must be called while an event loop is running. Concurrent reads for
    the same arguments share a single producer call.
    """

    def __init__(
        self,
        producer: Producer[R],
        *,
        auto_purge: bool = True,
        purge_age_factor: float = 1.5,
        purge_chunk_size: int = 1000,
    ) -> None:
        if not callable(producer):
            raise TypeError(
                f"producer must be callable, got {type(producer).__name__}"
            )
        self._options = LookupOptions(
            auto_purge=auto_purge,
            purge_age_factor=purge_age_factor,
            purge_chunk_size=purge_chunk_size,
        )
        self._producer = producer
        self._store = ValueStore()
        self._events = EventEmitter()
        self._scheduler = (
            PurgeScheduler(
                self._store,
                self._events,
                age_factor=purge_age_factor,
                chunk_size=purge_chunk_size,
            )
            if auto_purge
            else None
        )
        self._coordinator = InFlightCoordinator(
            producer, self._store, self._events, self._scheduler
        )
        self._background_tasks: set[asyncio.Task[Any]] = set()

    @classmethod
    def from_options(
        cls, producer: Producer[R], options: LookupOptions
    ) -> CachedLookup[R]:
        """Create a CachedLookup from a prebuilt options object."""
        return cls(
            producer,
            auto_purge=options.auto_purge,
            purge_age_factor=options.purge_age_factor,
            purge_chunk_size=options.purge_chunk_size,
        )

    @property
    def options(self) -> LookupOptions:
        return self._options

    @property
    def producer(self) -> Producer[R]:
        return self._producer

    @property
    def next_purge_at(self) -> float | None:
        """Unix time (ms) of the next scheduled purge sweep, if any."""
        if self._scheduler is None:
            return None
        return self._scheduler.wake_at

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def cached(self, max_age: Duration, *args: Argument) -> asyncio.Future[R]:
        """Get a value no older than max_age, fetching a fresh one on a miss.

        Use this over rolling() when the age bound matters more than latency:
        a miss waits for the producer.
        """
        max_age_ms = parse_duration(max_age)
        key = encode_key(args)

        record = self._read(key, max_age_ms)
        if record is not None:
            return _resolved(record.value)
        return asyncio.shield(self._coordinator.resolve(key, args, max_age_ms))

    def rolling(self, target_age: Duration, *args: Argument) -> asyncio.Future[R]:
        """Get the latest cached value, refreshing it in the background if stale.

        Only a missing value is waited for. A value older than target_age is
        returned as-is while a single refresh runs in the background.
        """
        max_age_ms = parse_duration(target_age)
        key = encode_key(args)

        record = self._read(key, max_age_ms)
        if record is not None:
            return _resolved(record.value)

        stale = self._store.peek(key)
        if stale is None:
            return asyncio.shield(self._coordinator.resolve(key, args, max_age_ms))

        if not self._coordinator.pending(key):
            self._refresh_in_background(key, args, max_age_ms)
        return _resolved(stale.value)

    def fresh(self, *args: Argument) -> asyncio.Future[R]:
        """Call the producer regardless of what is cached, sharing in-flight calls."""
        key = encode_key(args)
        return asyncio.shield(self._coordinator.resolve(key, args))

    def get(self, *args: Argument) -> R | None:
        """Get the cached value for args regardless of its age."""
        record = self._store.peek(encode_key(args))
        if record is None:
            return None
        return record.value

    # -------------------------------------------------------------------------
    # Bookkeeping
    # -------------------------------------------------------------------------

    def expire(self, *args: Argument) -> bool:
        """Drop the cached value for args. Returns whether there was one.

        A producer call already in flight for args is left running and will
        store its result when it settles.
        """
        return self._store.delete(encode_key(args))

    def in_flight(self, *args: Argument) -> bool:
        """Whether a producer call for args is currently pending."""
        return self._coordinator.pending(encode_key(args))

    def updated_at(self, *args: Argument) -> int | None:
        """Unix time (ms) the cached value for args was resolved, if cached."""
        record = self._store.peek(encode_key(args))
        if record is None:
            return None
        return record.updated_at

    def clear(self) -> None:
        """Drop every cached value. In-flight producer calls keep running."""
        self._store.clear()
        if self._scheduler is not None:
            self._scheduler.cancel()

    def records(self) -> Mapping[LookupKey, ValueRecord[R]]:
        """Read-only snapshot of the cached records."""
        return self._store.snapshot()

    def pending(self) -> frozenset[LookupKey]:
        """Snapshot of the keys with a producer call in flight."""
        return frozenset(self._coordinator.keys())

    @property
    def size(self) -> int:
        """Number of cached records."""
        return len(self._store)

    # -------------------------------------------------------------------------
    # Observers
    # -------------------------------------------------------------------------

    def on(self, event: Event, listener: Listener) -> CachedLookup[R]:
        """Call listener(value, *args) on every "purge" or "fresh" event."""
        self._events.on(event, listener)
        return self

    def once(self, event: Event, listener: Listener) -> CachedLookup[R]:
        """Call listener(value, *args) on the next "purge" or "fresh" event."""
        self._events.once(event, listener)
        return self

    def off(self, event: Event, listener: Listener) -> bool:
        """Unregister listener. Returns whether it was registered."""
        return self._events.off(event, listener)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def close(self) -> None:
        """Stop background purging for good. Cached values stay readable."""
        if self._scheduler is not None:
            self._scheduler.close()

    async def __aenter__(self) -> CachedLookup[R]:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.close()

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------

    def _read(self, key: LookupKey, max_age_ms: float) -> ValueRecord[R] | None:
        previous = self._store.peek(key)
        untracked = previous is not None and previous.max_age_hint is None
        record = self._store.get(key, max_age_ms)
        if untracked and self._scheduler is not None:
            # First hint on a record: it now has an expiry to schedule
            self._scheduler.track(previous)
        return record

    def _refresh_in_background(
        self, key: LookupKey, args: tuple[Any, ...], max_age_hint: float
    ) -> None:
        logger.debug(f"Refreshing stale value for {key} in the background")
        task = self._coordinator.resolve(key, args, max_age_hint)
        self._background_tasks.add(task)
        task.add_done_callback(self._on_refresh_done)

    def _on_refresh_done(self, task: asyncio.Task[Any]) -> None:
        self._background_tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.opt(exception=error).warning(
                f"Background refresh failed: {error!r}"
            )

    def __repr__(self) -> str:
        name = getattr(self._producer, "__qualname__", repr(self._producer))
        return (
            f"CachedLookup({name}, records={len(self._store)}, "
            f"in_flight={len(self._coordinator)})"
        )


def cached_lookup(
    producer: Producer[R] | None = None,
    /,
    *,
    auto_purge: bool = True,
    purge_age_factor: float = 1.5,
    purge_chunk_size: int = 1000,
) -> Any:
    """Decorator turning a lookup function into a CachedLookup.

    Usage:
        @cached_lookup
        async def get_user(id: str) -> User:
            return await fetch_user(id)

        @cached_lookup(purge_age_factor=2)
        def read_config(path: str) -> str:
            ...

        user = await get_user.cached("30s", "123")
    """

    def decorator(fn: Producer[R]) -> CachedLookup[R]:
        lookup = CachedLookup(
            fn,
            auto_purge=auto_purge,
            purge_age_factor=purge_age_factor,
            purge_chunk_size=purge_chunk_size,
        )
        return update_wrapper(lookup, fn)

    if producer is not None:
        return decorator(producer)
    return decorator


__all__ = ["CachedLookup", "cached_lookup"]

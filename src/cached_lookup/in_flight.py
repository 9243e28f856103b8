"""In-flight request coalescing (stampede protection)."""

from __future__ import annotations

import asyncio
import inspect
from typing import Any

from cached_lookup.events import EventEmitter
from cached_lookup.purge import PurgeScheduler
from cached_lookup.store import ValueStore, merge_hint
from cached_lookup.types import EmptyResultError, LookupKey, Producer


class InFlightCoordinator:
    """Run at most one producer call per key and share its outcome.

    Every caller arriving while a key is pending receives the same task, so
    a success or a failure is delivered identically to all of them. The
    pending entry is dropped before the task settles, which means a call made
    after settlement always starts a new producer invocation.
    """

    def __init__(
        self,
        producer: Producer[Any],
        store: ValueStore,
        emitter: EventEmitter,
        scheduler: PurgeScheduler | None = None,
    ) -> None:
        self._producer = producer
        self._store = store
        self._emitter = emitter
        self._scheduler = scheduler
        self._pending: dict[LookupKey, asyncio.Task[Any]] = {}
        self._hints: dict[LookupKey, float | None] = {}

    def resolve(
        self,
        key: LookupKey,
        args: tuple[Any, ...],
        max_age_hint: float | None = None,
    ) -> asyncio.Task[Any]:
        """Get the pending task for key, starting the producer if needed."""
        existing = self._pending.get(key)
        if existing is not None:
            self._hints[key] = merge_hint(self._hints.get(key), max_age_hint)
            return existing

        loop = asyncio.get_running_loop()
        self._hints[key] = max_age_hint
        task = loop.create_task(self._run(key, args))
        self._pending[key] = task
        return task

    def pending(self, key: LookupKey) -> bool:
        return key in self._pending

    def keys(self) -> list[LookupKey]:
        return list(self._pending)

    def __len__(self) -> int:
        return len(self._pending)

    async def _run(self, key: LookupKey, args: tuple[Any, ...]) -> Any:
        try:
            value = await self._invoke(args)
            record = self._store.set(key, args, value, self._hints.get(key))
        finally:
            del self._pending[key]
            self._hints.pop(key, None)

        if self._scheduler is not None:
            self._scheduler.track(record)
        self._emitter.emit("fresh", value, args)
        return value

    async def _invoke(self, args: tuple[Any, ...]) -> Any:
        result = self._producer(*args)
        if inspect.isawaitable(result):
            result = await result
        if result is None:
            raise EmptyResultError(f"Lookup returned no value for arguments {args!r}")
        return result

"""Observer hooks for cache lifecycle events."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from loguru import logger

from cached_lookup.types import EVENTS, Event

Listener = Callable[..., Any]


def _check_event(event: str) -> None:
    if event not in EVENTS:
        raise ValueError(f"Unknown event {event!r}, expected one of {EVENTS}")


class EventEmitter:
    """Ordered, synchronous listener registry for "purge" and "fresh" events.

    Listeners are purely observational: they are called after the state
    change has been committed, and a listener that raises is logged and
    skipped without affecting the cache or the remaining listeners.
    """

    def __init__(self) -> None:
        self._listeners: dict[Event, list[tuple[Listener, bool]]] = {
            event: [] for event in EVENTS
        }

    def on(self, event: Event, listener: Listener) -> None:
        """Register listener for every occurrence of event."""
        self._add(event, listener, once=False)

    def once(self, event: Event, listener: Listener) -> None:
        """Register listener for the next occurrence of event only."""
        self._add(event, listener, once=True)

    def off(self, event: Event, listener: Listener) -> bool:
        """Remove the first registration of listener. Returns whether one existed."""
        _check_event(event)
        listeners = self._listeners[event]
        for index, (registered, _) in enumerate(listeners):
            if registered is listener:
                del listeners[index]
                return True
        return False

    def listener_count(self, event: Event) -> int:
        _check_event(event)
        return len(self._listeners[event])

    def emit(self, event: Event, value: Any, args: tuple[Any, ...]) -> None:
        """Call listeners for event with (value, *args)."""
        listeners = self._listeners[event]
        if not listeners:
            return

        # Snapshot so listeners may (un)register while being notified
        current = list(listeners)
        self._listeners[event] = [entry for entry in listeners if not entry[1]]
        for listener, _ in current:
            try:
                listener(value, *args)
            except Exception as e:
                logger.warning(f"{event!r} listener {listener!r} failed: {e!r}")

    def _add(self, event: Event, listener: Listener, *, once: bool) -> None:
        _check_event(event)
        if not callable(listener):
            raise TypeError(
                f"listener must be callable, got {type(listener).__name__}"
            )
        self._listeners[event].append((listener, once))

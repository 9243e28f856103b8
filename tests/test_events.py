"""Tests for "purge" and "fresh" observers."""

import pytest

from cached_lookup import CachedLookup, EventEmitter


class TestEventEmitter:
    """Tests for EventEmitter."""

    def test_emit_calls_listeners_in_order(self) -> None:
        """Test that listeners get (value, *args) in registration order."""
        emitter = EventEmitter()
        seen: list = []
        emitter.on("fresh", lambda value, *args: seen.append(("first", value, args)))
        emitter.on("fresh", lambda value, *args: seen.append(("second", value, args)))

        emitter.emit("fresh", "v", ("a", 1))
        assert seen == [("first", "v", ("a", 1)), ("second", "v", ("a", 1))]

    def test_once(self) -> None:
        """Test that once-listeners fire a single time."""
        emitter = EventEmitter()
        seen: list = []
        emitter.once("purge", lambda value: seen.append(value))

        emitter.emit("purge", "v1", ())
        emitter.emit("purge", "v2", ())
        assert seen == ["v1"]
        assert emitter.listener_count("purge") == 0

    def test_off(self) -> None:
        """Test removing a listener."""
        emitter = EventEmitter()
        seen: list = []

        def listener(value: str) -> None:
            seen.append(value)

        emitter.on("fresh", listener)
        assert emitter.off("fresh", listener) is True
        assert emitter.off("fresh", listener) is False

        emitter.emit("fresh", "v", ())
        assert seen == []

    def test_failing_listener_does_not_stop_others(self) -> None:
        """Test that a raising listener is skipped."""
        emitter = EventEmitter()
        seen: list = []

        def broken(value: str) -> None:
            raise RuntimeError("boom")

        emitter.on("fresh", broken)
        emitter.on("fresh", lambda value: seen.append(value))

        emitter.emit("fresh", "v", ())
        assert seen == ["v"]

    def test_unknown_event_rejected(self) -> None:
        """Test that only "purge" and "fresh" are accepted."""
        emitter = EventEmitter()
        with pytest.raises(ValueError, match="Unknown event"):
            emitter.on("expire", print)  # type: ignore[arg-type]

    def test_non_callable_rejected(self) -> None:
        """Test that listeners must be callable."""
        emitter = EventEmitter()
        with pytest.raises(TypeError):
            emitter.on("fresh", "print")  # type: ignore[arg-type]


class TestLookupEvents:
    """Tests for events emitted by CachedLookup."""

    async def test_fresh_event(self, lookup: CachedLookup) -> None:
        """Test that every resolution emits "fresh" with value and args."""
        seen: list = []
        lookup.on("fresh", lambda value, *args: seen.append((value, args)))

        await lookup.fresh("a", 1)
        await lookup.fresh("a", 1)
        assert seen == [("a:1:v1", ("a", 1)), ("a:1:v2", ("a", 1))]

    async def test_no_fresh_event_on_hit(self, lookup: CachedLookup) -> None:
        """Test that cache hits are silent."""
        seen: list = []
        lookup.on("fresh", lambda value, *args: seen.append(value))

        await lookup.cached(10_000, "a")
        await lookup.cached(10_000, "a")
        assert seen == ["a:v1"]

    async def test_no_fresh_event_on_failure(self) -> None:
        """Test that failed lookups do not emit."""
        seen: list = []

        async def failing(*args: object) -> str:
            raise RuntimeError("backend down")

        lookup = CachedLookup(failing)
        lookup.on("fresh", lambda value, *args: seen.append(value))

        with pytest.raises(RuntimeError):
            await lookup.fresh("a")
        assert seen == []

    async def test_failing_listener_does_not_break_lookup(
        self, lookup: CachedLookup
    ) -> None:
        """Test that observers cannot affect caching."""

        def broken(value: str, *args: object) -> None:
            raise RuntimeError("observer bug")

        lookup.on("fresh", broken)
        assert await lookup.cached(10_000, "a") == "a:v1"
        assert lookup.get("a") == "a:v1"

    async def test_on_returns_lookup_for_chaining(self, lookup: CachedLookup) -> None:
        """Test that on()/once() can be chained."""
        assert lookup.on("fresh", print).once("purge", print) is lookup
        assert lookup.off("fresh", print) is True

"""Shared pytest fixtures."""

import asyncio
import pytest

from cached_lookup import CachedLookup


class VersionedProducer:
    """Async producer returning "<args>:v<call number>" after an optional delay."""

    def __init__(self, delay: float = 0.0) -> None:
        self.delay = delay
        self.calls: list[tuple] = []

    @property
    def count(self) -> int:
        return len(self.calls)

    async def __call__(self, *args: object) -> str:
        self.calls.append(args)
        version = len(self.calls)
        if self.delay:
            await asyncio.sleep(self.delay)
        return ":".join(str(arg) for arg in args) + f":v{version}"


@pytest.fixture
def producer() -> VersionedProducer:
    """Create a fresh instant producer for each test."""
    return VersionedProducer()


@pytest.fixture
def slow_producer() -> VersionedProducer:
    """Create a producer that takes 50ms per call."""
    return VersionedProducer(delay=0.05)


@pytest.fixture
def lookup(producer: VersionedProducer) -> CachedLookup:
    """Create a CachedLookup over the instant producer."""
    return CachedLookup(producer)

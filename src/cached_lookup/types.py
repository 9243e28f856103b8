"""Core types for the cached_lookup library."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from numbers import Real
from typing import (
    TYPE_CHECKING,
    Any,
    Generic,
    Literal,
    NewType,
    TypeVar,
    Union,
)

T = TypeVar("T")

# Branded key type - compile-time enforcement only
if TYPE_CHECKING:
    LookupKey = NewType("LookupKey", str)
else:
    LookupKey = str

# Closed set of values that may contribute to a lookup key
Argument = Union[bool, int, float, str, "list[Argument]", "tuple[Argument, ...]"]

Producer = Callable[..., T | Awaitable[T]]

Event = Literal["purge", "fresh"]
EVENTS: tuple[Event, ...] = ("purge", "fresh")

# Duration type alias
Duration = str | int | float  # "30s", "5m", "2h", "1d" or milliseconds


class CachedLookupError(Exception):
    """Base class for errors raised by cached_lookup."""


class EmptyResultError(CachedLookupError):
    """The producer settled without returning a value."""


@dataclass(slots=True)
class ValueRecord(Generic[T]):
    """A cached value with freshness metadata."""

    value: T
    args: tuple[Any, ...]
    updated_at: int  # Unix timestamp ms
    max_age_hint: float | None = None  # Largest max age requested, ms

    def age(self, now: int) -> int:
        return now - self.updated_at

    def expires_at(self, factor: float) -> float | None:
        """Instant (ms) after which the purge scheduler may evict this record."""
        if self.max_age_hint is None:
            return None
        return self.updated_at + self.max_age_hint * factor


@dataclass(frozen=True, slots=True)
class LookupOptions:
    """Immutable configuration for a CachedLookup instance."""

    auto_purge: bool = True
    purge_age_factor: float = 1.5
    purge_chunk_size: int = 1000

    def __post_init__(self) -> None:
        if not isinstance(self.auto_purge, bool):
            raise TypeError(
                f"auto_purge must be a bool, got {type(self.auto_purge).__name__}"
            )
        if isinstance(self.purge_age_factor, bool) or not isinstance(
            self.purge_age_factor, Real
        ):
            raise TypeError(
                "purge_age_factor must be a number, "
                f"got {type(self.purge_age_factor).__name__}"
            )
        if not self.purge_age_factor >= 1:
            raise ValueError("purge_age_factor must be greater than or equal to 1")
        if isinstance(self.purge_chunk_size, bool) or not isinstance(
            self.purge_chunk_size, int
        ):
            raise TypeError(
                "purge_chunk_size must be an int, "
                f"got {type(self.purge_chunk_size).__name__}"
            )
        if self.purge_chunk_size < 1:
            raise ValueError("purge_chunk_size must be at least 1")

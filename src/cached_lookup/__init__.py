"""cached_lookup - per-argument memoization for slow or rate-limited lookups."""

# Duration parsing
from cached_lookup.duration import parse_duration

# Observers
from cached_lookup.events import EventEmitter

# Key encoding
from cached_lookup.keys import encode_key

# CachedLookup API
from cached_lookup.lookup import CachedLookup, cached_lookup

# Core types
from cached_lookup.types import (
    Argument,
    CachedLookupError,
    Duration,
    EmptyResultError,
    Event,
    LookupKey,
    LookupOptions,
    ValueRecord,
)

__version__ = "0.1.0"

__all__ = [
    "Argument",
    "CachedLookup",
    "CachedLookupError",
    "Duration",
    "EmptyResultError",
    "Event",
    "EventEmitter",
    "LookupKey",
    "LookupOptions",
    "ValueRecord",
    "cached_lookup",
    "encode_key",
    "parse_duration",
]

"""In-memory value store."""

from __future__ import annotations

import time
from collections.abc import Iterator, Mapping
from dataclasses import replace
from types import MappingProxyType
from typing import Any

from cached_lookup.types import LookupKey, ValueRecord


def now_ms() -> int:
    """Current Unix time in milliseconds."""
    return int(time.time() * 1000)


def merge_hint(current: float | None, requested: float | None) -> float | None:
    if current is None:
        return requested
    if requested is None:
        return current
    return max(current, requested)


class ValueStore:
    """Mapping of lookup keys to their last resolved value."""

    def __init__(self) -> None:
        self._records: dict[LookupKey, ValueRecord[Any]] = {}

    def get(
        self, key: LookupKey, max_age: float | None = None
    ) -> ValueRecord[Any] | None:
        """Get the record for key if it is no older than max_age.

        Asking with a max_age widens the record's purge hint even when the
        record turns out to be too old, so it is not evicted while someone
        still tolerates it.
        """
        record = self._records.get(key)
        if record is None:
            return None
        if max_age is None:
            return record

        record.max_age_hint = merge_hint(record.max_age_hint, max_age)
        if record.age(now_ms()) <= max_age:
            return record
        return None

    def peek(self, key: LookupKey) -> ValueRecord[Any] | None:
        """Get the record for key regardless of age."""
        return self._records.get(key)

    def set(
        self,
        key: LookupKey,
        args: tuple[Any, ...],
        value: Any,
        max_age_hint: float | None = None,
    ) -> ValueRecord[Any]:
        """Store a freshly resolved value."""
        previous = self._records.get(key)
        hint = merge_hint(
            previous.max_age_hint if previous is not None else None, max_age_hint
        )
        record: ValueRecord[Any] = ValueRecord(
            value=value,
            args=args,
            updated_at=now_ms(),
            max_age_hint=hint,
        )
        self._records[key] = record
        return record

    def delete(self, key: LookupKey) -> bool:
        """Remove the record for key. Returns whether one existed."""
        return self._records.pop(key, None) is not None

    def evict(self, key: LookupKey) -> ValueRecord[Any] | None:
        """Remove and return the record for key."""
        return self._records.pop(key, None)

    def clear(self) -> None:
        """Remove all records."""
        self._records.clear()

    def keys(self) -> list[LookupKey]:
        """Snapshot of the stored keys."""
        return list(self._records)

    def snapshot(self) -> Mapping[LookupKey, ValueRecord[Any]]:
        """Read-only copy of all records, safe to hold across mutations."""
        return MappingProxyType(
            {key: replace(record) for key, record in self._records.items()}
        )

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, key: object) -> bool:
        return key in self._records

    def __iter__(self) -> Iterator[LookupKey]:
        return iter(self.keys())

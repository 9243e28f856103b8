"""Lookup key encoding."""

import json
from collections.abc import Sequence
from typing import Any

from cached_lookup.types import Argument, LookupKey


def _normalize(arg: Any) -> Any:
    """Validate a key argument and map it onto a JSON-encodable equivalent."""
    # bool is checked before int since it is a subclass
    if isinstance(arg, (bool, str)):
        return arg
    if isinstance(arg, int):
        return int(arg)
    if isinstance(arg, float):
        # 1.0 == 1 must land on the same key
        if arg.is_integer():
            return int(arg)
        return arg
    if isinstance(arg, (list, tuple)):
        return [_normalize(item) for item in arg]
    raise TypeError(
        f"Unsupported lookup argument type {type(arg).__name__}: "
        "expected bool, int, float, str or a list/tuple of these"
    )


def encode_key(args: Sequence[Argument]) -> LookupKey:
    """Encode an ordered argument sequence into a lookup key.

    Arguments are serialized as a compact JSON array, so string boundaries
    and types survive: ("1", "2"), ("12",) and (12,) are three distinct keys.

    Example:
        encode_key(("user", 42))        # '["user",42]'
        encode_key(("a", ["b", True]))  # '["a",["b",true]]'
    """
    normalized = [_normalize(arg) for arg in args]
    return LookupKey(json.dumps(normalized, separators=(",", ":")))

"""Duration parsing utilities."""

import math
import re
from numbers import Real

from cached_lookup.types import Duration

_DURATION_PATTERN = re.compile(r"^(\d+(?:\.\d+)?)(ms|s|m|h|d)$")
_UNITS: dict[str, int] = {
    "ms": 1,
    "s": 1000,
    "m": 60_000,
    "h": 3_600_000,
    "d": 86_400_000,
}


def parse_duration(duration: Duration) -> float:
    """Parse a max age to milliseconds. Numbers are taken as milliseconds."""
    if isinstance(duration, bool):
        raise TypeError("Duration must be a number or a duration string, got bool")

    if isinstance(duration, Real):
        if math.isnan(duration) or duration < 0:
            raise ValueError(f"Duration must be a non-negative number: {duration!r}")
        return duration

    if not isinstance(duration, str):
        raise TypeError(
            "Duration must be a number or a duration string, "
            f"got {type(duration).__name__}"
        )

    match = _DURATION_PATTERN.match(duration)
    if not match:
        raise ValueError(f"Invalid duration: {duration!r}")

    value, unit = match.groups()
    amount = float(value) if "." in value else int(value)
    return amount * _UNITS[unit]

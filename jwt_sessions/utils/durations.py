"""Human-readable duration parsing.

Durations show up in three places: ``expires_in``, ``not_before`` and
``expires_key_in``. Each accepts whole seconds (``int``), a
``timedelta``, or a string such as ``"10 seconds"``, ``"15m"`` or
``"2 days"``. Fractions are truncated toward zero, never rounded.
"""

import math
from datetime import timedelta

from humanfriendly import InvalidTimespan, parse_timespan

Duration = int | str | timedelta


def parse_duration(text: str) -> int:
    """Parse a human-readable duration into whole seconds.

    >>> parse_duration("1.5 minutes")
    90
    >>> parse_duration("1500 ms")
    1
    """
    if not text or not text.strip():
        raise ValueError("duration string must not be empty")
    try:
        seconds = parse_timespan(text.strip())
    except InvalidTimespan as exc:
        raise ValueError(f"invalid duration: {text!r}") from exc
    return math.floor(seconds)


def to_seconds(value: Duration) -> int:
    """Normalise any accepted duration form to whole seconds."""
    if isinstance(value, bool):
        raise ValueError("duration must be seconds, a timedelta or a string")
    if isinstance(value, int):
        return value
    if isinstance(value, timedelta):
        return math.floor(value.total_seconds())
    if isinstance(value, str):
        return parse_duration(value)
    raise ValueError("duration must be seconds, a timedelta or a string")

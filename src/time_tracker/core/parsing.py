"""Parsing and formatting of command-line values."""

import math
from datetime import timedelta

from time_tracker.core.errors import InvalidDuration, InvalidNumber
from time_tracker.core.models import duration_to_ns, ns_to_duration

NANOSECOND = 1
MICROSECOND = 1000 * NANOSECOND
MILLISECOND = 1000 * MICROSECOND
SECOND = 1000 * MILLISECOND
MINUTE = 60 * SECOND
HOUR = 60 * MINUTE

UNIT_NANOSECONDS = {
    "h": HOUR,
    "m": MINUTE,
    "s": SECOND,
}

# Largest duration a signed 64-bit duration column can hold.
MAX_DURATION_NS = 2**63 - 1


def _is_plain(text: str) -> bool:
    """True unless the text has digit separators or surrounding whitespace."""
    return "_" not in text and text == text.strip()


def parse_duration(text: str) -> timedelta:
    """Parse a compact duration such as ``1.5h``, ``45m`` or ``30s``.

    Args:
        text: Number immediately followed by one unit character (h, m, s)

    Returns:
        Parsed duration

    Raises:
        InvalidDuration: If the unit is unknown or the number is malformed
    """
    if not text:
        raise InvalidDuration("Duration is empty")

    unit = text[-1]
    if unit not in UNIT_NANOSECONDS:
        raise InvalidDuration(f"Duration with invalid unit: {text}")

    number = text[:-1]
    if not _is_plain(number):
        raise InvalidDuration(f"Invalid duration value: {text}")
    try:
        value = float(number)
    except ValueError as e:
        raise InvalidDuration(f"Invalid duration value: {text}") from e

    if not math.isfinite(value) or value < 0:
        raise InvalidDuration(f"Duration must be a finite, non-negative number: {text}")

    ns = value * UNIT_NANOSECONDS[unit]
    if not math.isfinite(ns) or int(ns) > MAX_DURATION_NS:
        raise InvalidDuration(f"Duration is too large: {text}")

    return ns_to_duration(int(ns))


def parse_number(text: str) -> float:
    """Parse a floating point argument.

    Raises:
        InvalidNumber: If the text is not a finite number
    """
    if not _is_plain(text):
        raise InvalidNumber(f"Failed to parse argument as number: {text!r}")
    try:
        value = float(text)
    except ValueError as e:
        raise InvalidNumber(f"Failed to parse argument as number: {text!r}") from e
    if not math.isfinite(value):
        raise InvalidNumber(f"Failed to parse argument as number: {text!r}")
    return value


def parse_int(text: str, name: str = "argument") -> int:
    """Parse a base-10 integer argument.

    Raises:
        InvalidNumber: If the text is not an integer
    """
    if not _is_plain(text):
        raise InvalidNumber(f"Failed to parse {name} as integer: {text!r}")
    try:
        return int(text, 10)
    except ValueError as e:
        raise InvalidNumber(f"Failed to parse {name} as integer: {text!r}") from e


def _fraction(value: int, unit: int) -> str:
    """Render value/unit as a decimal without trailing zeros."""
    whole, rest = divmod(value, unit)
    if rest == 0:
        return str(whole)
    width = len(str(unit)) - 1
    return f"{whole}.{str(rest).rjust(width, '0').rstrip('0')}"


def format_duration(value: timedelta) -> str:
    """Format a duration like ``1h30m0s``, ``2m5.5s`` or ``250ms``.

    Hours are not rolled over into days.
    """
    ns = duration_to_ns(value)
    if ns == 0:
        return "0s"

    sign = "-" if ns < 0 else ""
    ns = abs(ns)

    if ns < SECOND:
        if ns < MICROSECOND:
            return f"{sign}{ns}ns"
        if ns < MILLISECOND:
            return f"{sign}{_fraction(ns, MICROSECOND)}µs"
        return f"{sign}{_fraction(ns, MILLISECOND)}ms"

    hours, rest = divmod(ns, HOUR)
    minutes, rest = divmod(rest, MINUTE)

    result = sign
    if hours:
        result += f"{hours}h"
    if hours or minutes:
        result += f"{minutes}m"
    return f"{result}{_fraction(rest, SECOND)}s"

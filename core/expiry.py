# core/expiry.py
"""
Human-friendly lifetimes: "10m", "12h", "3d", "1w".

The grammar is deliberately narrow: one unsigned non-zero integer followed by
exactly one lowercase unit letter. No fractions, no compound values, no bare
numbers, no whitespace.
"""
import re
from datetime import timedelta
from typing import Final, Optional
from util.errors import ExpiryOutOfRange, InvalidDurationFormat

_PATTERN: Final = re.compile(r"([0-9]+)([mhdw])")

UNITS: Final[dict[str, timedelta]] = {
    "m": timedelta(minutes=1),
    "h": timedelta(hours=1),
    "d": timedelta(days=1),
    "w": timedelta(weeks=1),
}

# Largest first; format() picks the first unit that divides evenly.
_FORMAT_ORDER: Final = ("w", "d", "h", "m")


def parse(text: str) -> timedelta:
    """Parse a compact duration. Raises InvalidDurationFormat on any deviation."""
    if not text:
        raise InvalidDurationFormat("empty duration string")
    match = _PATTERN.fullmatch(text)
    if match is None:
        raise InvalidDurationFormat(
            f"invalid duration format: {text!r} (expected format like 10m, 12h, 3d, 1w)"
        )
    try:
        value = int(match.group(1))
        if value <= 0:
            raise InvalidDurationFormat(f"duration value must be positive: {value}")
        return value * UNITS[match.group(2)]
    except (OverflowError, ValueError) as e:
        # Too many digits for int() or a product past timedelta.max
        raise InvalidDurationFormat("duration value out of range") from e


def validate(duration: timedelta, minimum: timedelta, maximum: timedelta) -> None:
    if duration < minimum:
        raise ExpiryOutOfRange(
            f"duration {format(duration)} is less than minimum {format(minimum)}",
            bound="minimum",
            limit=format(minimum),
        )
    if duration > maximum:
        raise ExpiryOutOfRange(
            f"duration {format(duration)} exceeds maximum {format(maximum)}",
            bound="maximum",
            limit=format(maximum),
        )


def format(duration: timedelta) -> str:  # noqa: A001 - mirrors parse()
    """
    Render with the largest unit that divides the duration exactly.
    Sub-minute remainders are truncated to whole minutes.
    """
    for unit in _FORMAT_ORDER:
        size = UNITS[unit]
        if duration >= size and duration % size == timedelta(0):
            return f"{duration // size}{unit}"
    return f"{duration // UNITS['m']}m"


def resolve(
    text: Optional[str],
    default: timedelta,
    minimum: timedelta,
    maximum: timedelta,
) -> timedelta:
    """Absent/empty text yields `default`; otherwise parse then bound-check."""
    if not text:
        return default
    duration = parse(text)
    validate(duration, minimum, maximum)
    return duration

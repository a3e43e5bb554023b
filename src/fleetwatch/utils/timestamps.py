"""Timestamp and duration normalization for raw event records.

Event durations arrive in seconds from some producers and milliseconds from
others. Everything inside fleetwatch works in seconds; conversion happens
here, at the boundary, and nowhere else.
"""

from datetime import datetime, timezone
from typing import Any, Literal, Optional

from dateutil import parser as dateutil_parser

DurationUnit = Literal["s", "ms"]


def normalize_timestamp(value: Any, assume_utc: bool = True) -> datetime:
    """Convert various timestamp formats to a UTC datetime.

    Handles:
    - int/float: Unix timestamp (auto-detects milliseconds vs seconds)
    - str: ISO format or other parseable formats via dateutil
    - datetime: Returns as-is if aware, converts if naive

    Args:
        value: Timestamp as int (ms or s), float, str, or datetime
        assume_utc: If True, treat naive timestamps as UTC (default True)

    Returns:
        Timezone-aware datetime in UTC

    Raises:
        ValueError: If value cannot be parsed as a timestamp

    Example:
        >>> normalize_timestamp(1705084800000)  # milliseconds
        datetime.datetime(2024, 1, 12, 18, 40, tzinfo=datetime.timezone.utc)
    """
    if isinstance(value, bool):
        raise ValueError(f"Cannot parse timestamp: {value!r} (type: bool)")

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, (int, float)):
        # Anything past 1e12 is milliseconds (after 2001)
        if value > 1e12:
            value = value / 1000
        return datetime.fromtimestamp(value, tz=timezone.utc)
    elif isinstance(value, str):
        try:
            dt = dateutil_parser.parse(value)
        except (dateutil_parser.ParserError, OverflowError) as e:
            raise ValueError(f"Cannot parse timestamp: {value!r}") from e
    else:
        raise ValueError(f"Cannot parse timestamp: {value!r} (type: {type(value).__name__})")

    if dt.tzinfo is None:
        if assume_utc:
            return dt.replace(tzinfo=timezone.utc)
        return dt.astimezone(timezone.utc)
    return dt.astimezone(timezone.utc)


def to_seconds(value: Optional[Any], unit: DurationUnit = "s") -> float:
    """Convert a raw duration to seconds.

    Missing, empty or negative durations become 0 so that aggregate
    computations never see None or NaN.

    Args:
        value: Raw duration (number or numeric string), possibly None
        unit: Unit of the raw value, "s" or "ms"

    Returns:
        Duration in seconds as a float

    Raises:
        ValueError: If unit is not "s" or "ms"
    """
    if unit not in ("s", "ms"):
        raise ValueError(f"Unknown duration unit: {unit!r}")
    if value is None or value == "" or isinstance(value, bool):
        return 0.0
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        return 0.0
    if seconds != seconds or seconds < 0:  # NaN or negative
        return 0.0
    if unit == "ms":
        seconds = seconds / 1000.0
    return seconds

import math
import re
from typing import Any, Optional, Sequence

import numpy as np
import pandas as pd

MS_PER_DAY = 24 * 60 * 60 * 1000
EPOCH_SECONDS_LIMIT = 1e12

_TIME_OF_DAY = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2})(?:\.(\d{1,3}))?)?$")
_NUMERIC = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")


def time_of_day_ms(text: str) -> Optional[int]:
    """Milliseconds since midnight for ``HH:MM[:SS[.fff]]``, else None."""
    match = _TIME_OF_DAY.match(text.strip())
    if not match:
        return None
    hours, minutes = int(match.group(1)), int(match.group(2))
    seconds = int(match.group(3) or 0)
    millis = int((match.group(4) or "0").ljust(3, "0"))
    if hours > 23 or minutes > 59 or seconds > 59:
        return None
    return ((hours * 60 + minutes) * 60 + seconds) * 1000 + millis


def has_nonzero_seconds(text: Any) -> bool:
    """True when the third ``:``-separated field parses to a non-zero number."""
    if not isinstance(text, str):
        return False
    parts = text.split(":")
    if len(parts) < 3:
        return False
    try:
        seconds = float(parts[2])
    except ValueError:
        return False
    return math.isfinite(seconds) and seconds != 0


def epoch_to_ms(value: float) -> float:
    """Epoch numbers below 1e12 are seconds."""
    if not math.isfinite(value):
        return math.nan
    return value * 1000 if value < EPOCH_SECONDS_LIMIT else value


def parse_timestamp_ms(value: Any, base_day_ms: Optional[int] = None) -> float:
    """Parse a single time label into epoch milliseconds.

    Accepts epoch numbers (seconds or milliseconds), numeric strings, ISO
    datetimes (naive values are taken as UTC) and time-of-day strings, the
    latter only when ``base_day_ms`` is known. Returns NaN when the label
    cannot be resolved.
    """
    if value is None or isinstance(value, bool):
        return math.nan
    if isinstance(value, (int, float, np.integer, np.floating)):
        return epoch_to_ms(float(value))
    if not isinstance(value, str):
        return math.nan

    text = value.strip()
    if not text:
        return math.nan
    if _NUMERIC.match(text):
        return epoch_to_ms(float(text))

    tod = time_of_day_ms(text)
    if tod is not None:
        return float(base_day_ms + tod) if base_day_ms is not None else math.nan
    if _TIME_OF_DAY.match(text):
        return math.nan

    try:
        stamp = pd.Timestamp(text)
    except (ValueError, TypeError, OverflowError):
        return math.nan
    if pd.isna(stamp):
        return math.nan
    if stamp.tzinfo is None:
        stamp = stamp.tz_localize("UTC")
    return float(stamp.value // 1_000_000)


def parse_timestamps(values: Sequence[Any], base_day_ms: Optional[int] = None) -> np.ndarray:
    """Parse labels in order; unparsable entries become NaN so indices line up."""
    return np.array(
        [parse_timestamp_ms(value, base_day_ms) for value in values],
        dtype="float64",
    )


def utc_day_start_ms(timestamp_ms: float) -> int:
    return int(timestamp_ms // MS_PER_DAY) * MS_PER_DAY

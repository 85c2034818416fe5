import math
import re
import time
from datetime import datetime, timezone
from typing import Any, NamedTuple, Optional, Sequence

import numpy as np

from ..entities.window import Domain, TimeWindow
from .timestamps import MS_PER_DAY, parse_timestamp_ms, time_of_day_ms, utc_day_start_ms

DEFAULT_SHIFT_API = "06:00:00to18:00:00"
SECONDS_PER_DAY = 24 * 3600

_API_SHIFT = re.compile(r"^(\d{2}):(\d{2}):(\d{2})to(\d{2}):(\d{2}):(\d{2})$")
_UI_SHIFT = re.compile(r"(\d+)\s*(AM|PM)\s+to\s+(\d+)\s*(AM|PM)", re.IGNORECASE)
_DATE_FORMATS = (
    (re.compile(r"^\d{4}-\d{2}-\d{2}$"), "%Y-%m-%d"),
    (re.compile(r"^\d{2}-\d{2}-\d{4}$"), "%d-%m-%Y"),
    (re.compile(r"^\d{2}/\d{2}/\d{4}$"), "%d/%m/%Y"),
)


class ShiftBounds(NamedTuple):
    """Shift start/end in seconds after midnight; end may exceed one day."""
    start_sec: int
    end_sec: int

    @property
    def crosses_midnight(self) -> bool:
        return self.end_sec > SECONDS_PER_DAY

    @property
    def duration_sec(self) -> int:
        return max(0, self.end_sec - self.start_sec)


def _to_24h(hour: int, period: str) -> int:
    period = period.upper()
    if period == "PM" and hour != 12:
        return hour + 12
    if period == "AM" and hour == 12:
        return 0
    return hour


def format_shift_for_api(shift: Optional[str]) -> str:
    """Normalize ``"6 AM to 6 PM"`` style shifts to ``HH:MM:SStoHH:MM:SS``."""
    if not shift or not isinstance(shift, str):
        return DEFAULT_SHIFT_API
    if _API_SHIFT.match(shift):
        return shift
    match = _UI_SHIFT.search(shift)
    if match:
        start = _to_24h(int(match.group(1)), match.group(2))
        end = _to_24h(int(match.group(3)), match.group(4))
        return f"{start:02d}:00:00to{end:02d}:00:00"
    return DEFAULT_SHIFT_API


def parse_shift(shift: Optional[str]) -> ShiftBounds:
    match = _API_SHIFT.match(format_shift_for_api(shift))
    values = [int(group) for group in match.groups()]
    start = values[0] * 3600 + values[1] * 60 + values[2]
    end = values[3] * 3600 + values[4] * 60 + values[5]
    if end <= start:
        end += SECONDS_PER_DAY
    return ShiftBounds(start, end)


def parse_date_to_utc_day_start_ms(date_str: Optional[str]) -> Optional[int]:
    """UTC midnight of ``YYYY-MM-DD``, ``DD-MM-YYYY`` or ``DD/MM/YYYY``."""
    text = str(date_str or "").strip()
    for pattern, fmt in _DATE_FORMATS:
        if pattern.match(text):
            try:
                day = datetime.strptime(text, fmt).replace(tzinfo=timezone.utc)
            except ValueError:
                return None
            return int(day.timestamp() * 1000)
    return None


def resolve_base_day_ms(
    sorted_ms: np.ndarray,
    selected_date: Optional[str] = None,
    now_ms: Optional[float] = None,
) -> int:
    """Day that time-of-day labels are anchored to.

    First payload timestamp, then the selected date, then today (UTC).
    """
    if len(sorted_ms):
        return utc_day_start_ms(float(sorted_ms[0]))
    selected = parse_date_to_utc_day_start_ms(selected_date)
    if selected is not None:
        return selected
    if now_ms is None:
        now_ms = time.time() * 1000
    return utc_day_start_ms(now_ms)


def shift_domain(base_day_ms: int, bounds: ShiftBounds) -> Domain:
    return Domain(
        min_ms=base_day_ms + bounds.start_sec * 1000,
        max_ms=base_day_ms + bounds.end_sec * 1000,
    )


def place_time_of_day(base_day_ms: int, tod_ms: int, bounds: Optional[ShiftBounds] = None) -> int:
    """Anchor a time of day; before-start times of a night shift go to the next day."""
    if bounds is not None and bounds.crosses_midnight and tod_ms < bounds.start_sec * 1000:
        return base_day_ms + MS_PER_DAY + tod_ms
    return base_day_ms + tod_ms


def parse_shift_timestamp_ms(value: Any, base_day_ms: int, bounds: Optional[ShiftBounds] = None) -> float:
    """Like :func:`parse_timestamp_ms`, with times of day placed inside the shift."""
    if isinstance(value, str):
        tod = time_of_day_ms(value)
        if tod is not None:
            return float(place_time_of_day(base_day_ms, tod, bounds))
    return parse_timestamp_ms(value, base_day_ms)


def parse_shift_timestamps(
    values: Sequence[Any],
    base_day_ms: int,
    bounds: Optional[ShiftBounds] = None,
) -> np.ndarray:
    return np.array([parse_shift_timestamp_ms(value, base_day_ms, bounds) for value in values], dtype="float64")


def _js_round(value: float) -> int:
    return int(math.floor(value + 0.5))


def centered_window(
    domain_start_ms: int,
    domain_end_ms: int,
    window_ms: int,
    center_ms: Optional[float] = None,
) -> TimeWindow:
    """Window of ``window_ms`` centered in the domain and kept inside it."""
    duration = max(0, domain_end_ms - domain_start_ms)
    width = max(1, min(window_ms, duration or window_ms))
    center = domain_start_ms + duration / 2 if center_ms is None else center_ms
    start = _js_round(center - width / 2)
    end = start + width
    if start < domain_start_ms:
        start = domain_start_ms
        end = start + width
    if end > domain_end_ms:
        end = domain_end_ms
        start = end - width
    return TimeWindow(start_ms=start, end_ms=end)

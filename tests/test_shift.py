import numpy as np
import pandas as pd
import pytest

from conftest import DAY_MS, HOUR_MS
from telemetry_timeline.entities.window import TimeWindow
from telemetry_timeline.exceptions.timeline_exceptions import DegenerateDomainError
from telemetry_timeline.utils.domain import data_extent, resolve_domain
from telemetry_timeline.utils.geometry import Margins, pixel_x, time_at_pixel
from telemetry_timeline.utils.shift import (
    ShiftBounds,
    centered_window,
    format_shift_for_api,
    parse_date_to_utc_day_start_ms,
    parse_shift,
    resolve_base_day_ms,
    shift_domain,
)


@pytest.mark.parametrize("shift,expected", [
    ("6 AM to 6 PM", "06:00:00to18:00:00"),
    ("10 pm to 6 am", "22:00:00to06:00:00"),
    ("12 AM to 12 PM", "00:00:00to12:00:00"),
    ("07:30:00to15:30:00", "07:30:00to15:30:00"),
    ("whenever", "06:00:00to18:00:00"),
    (None, "06:00:00to18:00:00"),
])
def test_format_shift_for_api(shift, expected) -> None:
    assert format_shift_for_api(shift) == expected


def test_parse_shift() -> None:
    assert parse_shift("06:00:00to18:00:00") == ShiftBounds(6 * 3600, 18 * 3600)
    night = parse_shift("10 PM to 6 AM")
    assert night == ShiftBounds(22 * 3600, 30 * 3600)
    assert night.crosses_midnight
    assert parse_shift("06:00:00to06:00:00").duration_sec == 24 * 3600


@pytest.mark.parametrize("text", ["2024-01-15", "15-01-2024", "15/01/2024", " 2024-01-15 "])
def test_date_formats(text) -> None:
    assert parse_date_to_utc_day_start_ms(text) == DAY_MS


@pytest.mark.parametrize("text", ["2024-02-30", "2024/01/15", "", None])
def test_invalid_dates(text) -> None:
    assert parse_date_to_utc_day_start_ms(text) is None


def test_base_day_preference() -> None:
    first = np.array([DAY_MS + 7 * HOUR_MS], dtype="float64")
    assert resolve_base_day_ms(first, "2023-05-01") == DAY_MS
    assert resolve_base_day_ms(np.array([]), "2024-01-15") == DAY_MS
    assert resolve_base_day_ms(np.array([]), None, now_ms=DAY_MS + 5) == DAY_MS


def test_shift_domain_and_centered_window() -> None:
    domain = shift_domain(DAY_MS, parse_shift("06:00:00to18:00:00"))
    assert (domain.min_ms, domain.max_ms) == (DAY_MS + 6 * HOUR_MS, DAY_MS + 18 * HOUR_MS)

    window = centered_window(domain.min_ms, domain.max_ms, HOUR_MS)
    assert window == TimeWindow(start_ms=DAY_MS + 11 * HOUR_MS + HOUR_MS // 2, end_ms=DAY_MS + 12 * HOUR_MS + HOUR_MS // 2)

    edge = centered_window(domain.min_ms, domain.max_ms, HOUR_MS, center_ms=domain.max_ms)
    assert edge.end_ms == domain.max_ms and edge.span_ms == HOUR_MS

    short = centered_window(0, 1000, HOUR_MS)
    assert short == TimeWindow(start_ms=0, end_ms=1000)


def test_domain_union_and_fallback() -> None:
    shift = shift_domain(DAY_MS, ShiftBounds(6 * 3600, 18 * 3600))
    frame = pd.DataFrame({"timestamp_ms": np.array([DAY_MS + 5 * HOUR_MS, DAY_MS + 7 * HOUR_MS], dtype="int64")})
    domain = resolve_domain([frame], shift)
    assert (domain.min_ms, domain.max_ms) == (DAY_MS + 5 * HOUR_MS, shift.max_ms)
    assert not domain.is_fallback

    fallback = resolve_domain([frame.iloc[:0]], shift)
    assert fallback.is_fallback
    assert (fallback.min_ms, fallback.max_ms) == (shift.min_ms, shift.max_ms)

    with pytest.raises(DegenerateDomainError):
        data_extent([frame.iloc[:1]])


def test_pixel_x() -> None:
    window = TimeWindow(start_ms=0, end_ms=1000)
    margins = Margins(left=50, right=50)
    assert pixel_x(window, 500, 600, margins) == 300
    assert pixel_x(window, -10, 600, margins) == 50
    assert pixel_x(window, 5000, 600, margins) == 550
    assert pixel_x(window, None, 600, margins) is None
    assert pixel_x(TimeWindow(start_ms=5, end_ms=5), 5, 600) is None
    assert pixel_x(window, 1000, 10, Margins(left=20, right=20)) == 21


def test_time_at_pixel_inverts_pixel_x() -> None:
    window = TimeWindow(start_ms=1000, end_ms=3000)
    margins = Margins(left=40, right=10)
    x = pixel_x(window, 2500, 450, margins)
    assert time_at_pixel(window, x, 450, margins) == 2500

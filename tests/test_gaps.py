import numpy as np
import pandas as pd

from telemetry_timeline.utils.gaps import detect_gaps, insert_breaks

MINUTE_MS = 60_000


def _analog(timestamps, averages):
    averages = np.asarray(averages, dtype="float64")
    return pd.DataFrame({
        "timestamp_ms": np.asarray(timestamps, dtype="int64"),
        "avg": averages,
        "min": averages - 1,
        "max": averages + 1,
    })


def test_one_break_per_gap() -> None:
    points = _analog([0, 60_000, 120_000, 420_000, 480_000], [1, 2, 3, 4, 5])
    broken = insert_breaks(points, MINUTE_MS)

    assert broken["timestamp_ms"].tolist() == [0, 60_000, 120_000, 180_000, 420_000, 480_000]
    assert broken.iloc[3][["avg", "min", "max"]].isna().all()
    assert broken["timestamp_ms"].dtype == np.int64


def test_gap_of_exactly_twice_the_interval_is_broken() -> None:
    broken = insert_breaks(_analog([0, 120_000], [1, 2]), MINUTE_MS)
    assert broken["timestamp_ms"].tolist() == [0, 60_000, 120_000]


def test_insert_breaks_is_idempotent() -> None:
    points = _analog([0, 600_000, 660_000, 1_200_000], [1, 2, 3, 4])
    once = insert_breaks(points, MINUTE_MS)
    twice = insert_breaks(once, MINUTE_MS)
    pd.testing.assert_frame_equal(once, twice)
    assert len(once) == len(points) + 2


def test_missing_neighbours_are_not_rebroken() -> None:
    points = _analog([0, 300_000, 600_000], [1, np.nan, 2])
    assert len(insert_breaks(points, MINUTE_MS)) == 3


def test_custom_threshold() -> None:
    points = _analog([0, 300_000], [1, 2])
    assert len(insert_breaks(points, MINUTE_MS, max_gap_ms=400_000)) == 2
    assert len(insert_breaks(points, MINUTE_MS, max_gap_ms=300_000)) == 3


def test_digital_frames() -> None:
    points = pd.DataFrame({"timestamp_ms": np.array([0, 5000], dtype="int64"), "value": [1.0, 0.0]})
    broken = insert_breaks(points, 1000)
    assert broken["timestamp_ms"].tolist() == [0, 1000, 5000]
    assert np.isnan(broken["value"].iloc[1])


def test_detect_gaps_reports_bounds() -> None:
    gaps = detect_gaps(_analog([0, 60_000, 400_000], [1, 2, 3]), MINUTE_MS)
    assert gaps.to_dict("records") == [{"start_ms": 60_000, "end_ms": 400_000}]
    assert detect_gaps(_analog([0], [1]), MINUTE_MS).empty

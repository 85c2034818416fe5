import numpy as np
import pandas as pd

from telemetry_timeline.entities.window import TimeWindow
from telemetry_timeline.utils.union_axis import build_union_axis, build_union_frame, filter_window

MINUTE_MS = 60_000


def _digital(timestamps, values):
    return pd.DataFrame({
        "timestamp_ms": np.asarray(timestamps, dtype="int64"),
        "value": np.asarray(values, dtype="float64"),
    })


def test_union_uses_exact_lookups_only() -> None:
    rows = build_union_axis(
        [("A", _digital([0, 60_000], [1, 0])), ("B", _digital([60_000, 120_000], [1, 1]))],
        None,
        expected_interval_ms=MINUTE_MS,
        pad_ms=0,
    )
    assert [row.timestamp_ms for row in rows] == [0, 60_000, 120_000]
    assert rows[0].values == {"A": 1.0, "B": None}
    assert rows[1].values == {"A": 0.0, "B": 1.0}
    assert rows[2].values == {"A": None, "B": 1.0}


def test_window_is_padded() -> None:
    points = _digital([0, 540_000, 600_000, 660_000, 1_000_000], [1, 1, 0, 1, 0])
    window = TimeWindow(start_ms=600_000, end_ms=660_000)
    assert filter_window(points, window, pad_ms=0)["timestamp_ms"].tolist() == [600_000, 660_000]
    assert filter_window(points, window, pad_ms=60_000)["timestamp_ms"].tolist() == [540_000, 600_000, 660_000]
    assert len(filter_window(points, None)) == 5


def test_gaps_are_broken_per_channel() -> None:
    rows = build_union_axis(
        [("A", _digital([0, 600_000], [1, 1]))],
        None,
        expected_interval_ms=MINUTE_MS,
        pad_ms=0,
    )
    assert [row.timestamp_ms for row in rows] == [0, 60_000, 600_000]
    assert rows[1].values == {"A": None}


def test_union_frame_is_sorted_and_unique() -> None:
    frame = build_union_frame(
        [("A", _digital([120_000, 180_000], [1, 0])), ("B", _digital([0, 60_000, 120_000], [0, 0, 1]))],
        None,
        expected_interval_ms=MINUTE_MS,
        pad_ms=0,
    )
    assert frame.index.tolist() == [0, 60_000, 120_000, 180_000]
    assert list(frame.columns) == ["A", "B"]


def test_no_channels() -> None:
    assert build_union_axis([], None, expected_interval_ms=MINUTE_MS, pad_ms=0) == []

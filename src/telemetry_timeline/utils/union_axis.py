from typing import List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from ..entities.metrics import UnionRow
from ..entities.window import TimeWindow
from .frames import clean_float, primary_column
from .gaps import insert_breaks


def filter_window(points: pd.DataFrame, window: Optional[TimeWindow], pad_ms: int = 0) -> pd.DataFrame:
    """Points inside the padded window; everything when there is no window."""
    if window is None:
        return points
    timestamps = points["timestamp_ms"]
    mask = (timestamps >= window.start_ms - pad_ms) & (timestamps <= window.end_ms + pad_ms)
    return points[mask].reset_index(drop=True)


def build_union_frame(
    channels: Sequence[Tuple[str, pd.DataFrame]],
    window: Optional[TimeWindow],
    *,
    expected_interval_ms: int,
    pad_ms: int,
) -> pd.DataFrame:
    """One column per channel, indexed by the sorted union of timestamps.

    Cells are exact matches only; absent timestamps stay NaN.
    """
    columns = {}
    for channel_id, points in channels:
        windowed = insert_breaks(filter_window(points, window, pad_ms), expected_interval_ms)
        series = windowed.set_index("timestamp_ms")[primary_column(windowed)]
        columns[channel_id] = series[~series.index.duplicated(keep="last")]

    indexes = [series.index.to_numpy(dtype="int64") for series in columns.values()]
    union = np.unique(np.concatenate(indexes)) if indexes else np.array([], dtype="int64")
    frame = pd.DataFrame(
        {channel_id: series.reindex(union) for channel_id, series in columns.items()},
        index=pd.Index(union, name="timestamp_ms"),
    )
    return frame


def build_union_axis(
    channels: Sequence[Tuple[str, pd.DataFrame]],
    window: Optional[TimeWindow],
    *,
    expected_interval_ms: int,
    pad_ms: int,
) -> List[UnionRow]:
    frame = build_union_frame(
        channels, window, expected_interval_ms=expected_interval_ms, pad_ms=pad_ms
    )
    channel_ids = list(frame.columns)
    rows = []
    for timestamp, values in zip(frame.index.tolist(), frame.to_numpy(dtype="float64").tolist()):
        rows.append(UnionRow(
            timestamp_ms=timestamp,
            values={channel_id: clean_float(value) for channel_id, value in zip(channel_ids, values)},
        ))
    return rows

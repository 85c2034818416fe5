from typing import Optional

import numpy as np
import pandas as pd

from ..entities.metrics import ChannelStats, CursorValue
from ..entities.window import TimeWindow
from ..enums.sampling import ChannelKind
from .frames import clean_float, present_points, primary_column
from .resolution import align


def window_stats(points: pd.DataFrame, window: Optional[TimeWindow] = None) -> ChannelStats:
    """Average/min/max of the present points inside ``window``.

    Falls back to the whole channel when the window holds no present point;
    returns empty stats when the channel has none at all.
    """
    present = present_points(points)
    if present.empty:
        return ChannelStats()

    if window is not None:
        timestamps = present["timestamp_ms"]
        inside = present[(timestamps >= window.start_ms) & (timestamps <= window.end_ms)]
        if not inside.empty:
            present = inside

    column = primary_column(present)
    averages = present[column]
    lows = present["min"].fillna(averages) if "min" in present.columns else averages
    highs = present["max"].fillna(averages) if "max" in present.columns else averages
    return ChannelStats(
        avg=clean_float(averages.mean()),
        min=clean_float(lows.min()),
        max=clean_float(highs.max()),
    )


def current_value(points: pd.DataFrame) -> Optional[float]:
    """Last present average (analog) or value (digital)."""
    present = present_points(points)
    if present.empty:
        return None
    return clean_float(present[primary_column(present)].iloc[-1])


def _cursor_value(row: pd.Series, channel_id: str, kind: ChannelKind) -> CursorValue:
    if kind == ChannelKind.DIGITAL:
        return CursorValue(
            channel_id=channel_id,
            kind=kind,
            timestamp_ms=int(row["timestamp_ms"]),
            value=clean_float(row["value"]),
        )
    return CursorValue(
        channel_id=channel_id,
        kind=kind,
        timestamp_ms=int(row["timestamp_ms"]),
        avg=clean_float(row["avg"]),
        min=clean_float(row["min"]),
        max=clean_float(row["max"]),
    )


def value_at(
    points: pd.DataFrame,
    cursor_ms: int,
    *,
    bucket_ms: int,
    tolerance_ms: int = 30000,
    channel_id: str = "",
) -> Optional[CursorValue]:
    """Analog values under the cursor, never extrapolated.

    An exact aligned match wins, and a missing point there reads as None.
    Otherwise the nearest present point within ``tolerance_ms`` is used.
    """
    if points.empty:
        return None
    aligned = align(cursor_ms, bucket_ms)
    timestamps = points["timestamp_ms"].to_numpy(dtype="int64")
    idx = int(np.searchsorted(timestamps, aligned))
    if idx < len(timestamps) and timestamps[idx] == aligned:
        row = points.iloc[idx]
        if pd.isna(row[primary_column(points)]):
            return None
        return _cursor_value(row, channel_id, ChannelKind.ANALOG)

    present = present_points(points)
    if present.empty:
        return None
    present_ts = present["timestamp_ms"].to_numpy(dtype="int64")
    pos = int(np.searchsorted(present_ts, aligned))
    best = None
    for candidate in (pos - 1, pos):
        if 0 <= candidate < len(present_ts):
            distance = abs(int(present_ts[candidate]) - aligned)
            if best is None or distance < best[0]:
                best = (distance, candidate)
    if best is None or best[0] > tolerance_ms:
        return None
    return _cursor_value(present.iloc[best[1]], channel_id, ChannelKind.ANALOG)


def digital_value_at(
    points: pd.DataFrame,
    cursor_ms: int,
    *,
    bucket_ms: int,
    channel_id: str = "",
) -> Optional[CursorValue]:
    """Exact aligned match only."""
    if points.empty:
        return None
    aligned = align(cursor_ms, bucket_ms)
    match = points[points["timestamp_ms"] == aligned]
    if match.empty or pd.isna(match["value"].iloc[-1]):
        return None
    return _cursor_value(match.iloc[-1], channel_id, ChannelKind.DIGITAL)

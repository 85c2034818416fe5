import logging
from typing import Optional, Union

import numpy as np
import pandas as pd

from .frames import present_mask, value_columns
from .tracing import stage_logger


def detect_gaps(
    points: pd.DataFrame,
    expected_interval_ms: int,
    max_gap_ms: Optional[int] = None,
) -> pd.DataFrame:
    """Adjacent present pairs at least ``max_gap_ms`` apart.

    Returns a frame with ``start_ms`` and ``end_ms`` (the two present points
    around each gap). ``max_gap_ms`` defaults to twice the expected interval.
    """
    if max_gap_ms is None:
        max_gap_ms = 2 * expected_interval_ms
    if len(points) < 2:
        return pd.DataFrame({"start_ms": pd.Series(dtype="int64"), "end_ms": pd.Series(dtype="int64")})

    timestamps = points["timestamp_ms"].to_numpy(dtype="int64")
    present = present_mask(points)
    deltas = np.diff(timestamps)
    mask = (deltas >= max_gap_ms) & present[:-1] & present[1:]
    return pd.DataFrame({"start_ms": timestamps[:-1][mask], "end_ms": timestamps[1:][mask]})


def insert_breaks(
    points: pd.DataFrame,
    expected_interval_ms: int,
    max_gap_ms: Optional[int] = None,
    logger: Optional[Union[logging.Logger, logging.LoggerAdapter]] = None,
) -> pd.DataFrame:
    """Insert one missing point at ``start + expected_interval_ms`` in every gap.

    Gaps already followed by a missing point are not re-broken, so calling
    this twice gives the same frame.
    """
    gaps = detect_gaps(points, expected_interval_ms, max_gap_ms)
    if gaps.empty:
        return points

    breaks = pd.DataFrame({"timestamp_ms": gaps["start_ms"].to_numpy(dtype="int64") + expected_interval_ms})
    for column in value_columns(points):
        breaks[column] = np.nan
    merged = pd.concat([points, breaks[points.columns]], ignore_index=True)
    merged = merged.sort_values("timestamp_ms", kind="mergesort").reset_index(drop=True)
    stage_logger("gaps", logger).debug("Inserted gap breaks", extra={"inserted": len(breaks)})
    return merged

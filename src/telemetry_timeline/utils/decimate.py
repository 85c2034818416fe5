import math

import numpy as np
import pandas as pd

from ..enums.sampling import DecimationMethod
from .frames import present_points, primary_column, value_columns
from .lttb import lttb_indices


def decimation_bucket_size(length: int, max_points: int) -> int:
    """Samples per output point; 1 when no decimation is needed."""
    if max_points < 1:
        raise ValueError("max_points must be at least 1")
    if length <= max_points:
        return 1
    return math.ceil(length / max_points)


def envelope_decimate(points: pd.DataFrame, max_points: int) -> pd.DataFrame:
    """Collapse contiguous buckets into one point each.

    First timestamp, mean of averages, min of minima and max of maxima, so
    the global extremes survive. A bucket with no present sample stays
    missing.
    """
    bucket = decimation_bucket_size(len(points), max_points)
    if bucket == 1:
        return points

    groups = np.arange(len(points)) // bucket
    if "avg" in points.columns:
        grouped = points.groupby(groups, sort=True).agg(
            timestamp_ms=("timestamp_ms", "first"),
            avg=("avg", "mean"),
            min=("min", "min"),
            max=("max", "max"),
        )
    else:
        grouped = points.groupby(groups, sort=True).agg(
            timestamp_ms=("timestamp_ms", "first"),
            value=("value", "mean"),
        )
    out = grouped.reset_index(drop=True)
    out["timestamp_ms"] = out["timestamp_ms"].astype("int64")
    return out[["timestamp_ms"] + value_columns(points)]


def lttb_decimate(points: pd.DataFrame, max_points: int) -> pd.DataFrame:
    """Keep the visually significant present samples."""
    if len(points) <= max_points:
        return points
    present = present_points(points).reset_index(drop=True)
    indices = lttb_indices(
        present["timestamp_ms"].to_numpy(dtype="float64"),
        present[primary_column(present)].to_numpy(dtype="float64"),
        max_points,
    )
    return present.iloc[indices].reset_index(drop=True)


def decimate(
    points: pd.DataFrame,
    max_points: int = 1500,
    method: DecimationMethod = DecimationMethod.ENVELOPE,
) -> pd.DataFrame:
    if method == DecimationMethod.LTTB:
        return lttb_decimate(points, max_points)
    return envelope_decimate(points, max_points)

import math
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd

ANALOG_VALUE_COLUMNS = ["avg", "min", "max"]
DIGITAL_VALUE_COLUMNS = ["value"]
ANALOG_COLUMNS = ["timestamp_ms"] + ANALOG_VALUE_COLUMNS
DIGITAL_COLUMNS = ["timestamp_ms"] + DIGITAL_VALUE_COLUMNS


def empty_frame(columns: List[str]) -> pd.DataFrame:
    frame = pd.DataFrame({column: pd.Series(dtype="float64") for column in columns})
    frame["timestamp_ms"] = frame["timestamp_ms"].astype("int64")
    return frame


def value_columns(points: pd.DataFrame) -> List[str]:
    """Value columns of an analog or digital point frame."""
    if "avg" in points.columns:
        return ANALOG_VALUE_COLUMNS
    return DIGITAL_VALUE_COLUMNS


def primary_column(points: pd.DataFrame) -> str:
    """Column whose absence marks a missing point."""
    return value_columns(points)[0]


def present_mask(points: pd.DataFrame) -> np.ndarray:
    return points[primary_column(points)].notna().to_numpy()


def present_points(points: pd.DataFrame) -> pd.DataFrame:
    return points[present_mask(points)]


def clean_float(value: Any) -> Optional[float]:
    """NaN → None, numpy scalar → float."""
    if value is None:
        return None
    value = float(value)
    return None if math.isnan(value) else value


def frame_records(points: pd.DataFrame) -> List[Dict[str, Any]]:
    """Convert a point frame into plain records with ``None`` for absence."""
    columns = value_columns(points)
    timestamps = points["timestamp_ms"].astype("int64").tolist()
    series = {column: points[column].tolist() for column in columns}
    records = []
    for i, ts in enumerate(timestamps):
        record: Dict[str, Any] = {"timestamp_ms": ts}
        for column in columns:
            record[column] = clean_float(series[column][i])
        records.append(record)
    return records

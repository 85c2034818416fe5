import logging
import math
from typing import Any, Optional, Union

import numpy as np
import pandas as pd

from ..entities.channel import Channel
from ..entities.payload import RawSample
from ..enums.sampling import ChannelKind
from .frames import ANALOG_COLUMNS, DIGITAL_COLUMNS, empty_frame
from .resolution import align_array
from .shift import ShiftBounds, parse_shift_timestamp_ms, parse_shift_timestamps
from .tracing import stage_logger


def to_number(value: Any) -> float:
    """Coerce a raw value to float; anything non-numeric becomes NaN."""
    if value is None or isinstance(value, bool):
        return math.nan
    if isinstance(value, (int, float, np.integer, np.floating)):
        return float(value)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return math.nan
        try:
            return float(text)
        except ValueError:
            return math.nan
    return math.nan


def _first_given(*values: Any) -> Any:
    for value in values:
        if value is not None:
            return value
    return None


def sample_time_ms(
    sample: RawSample,
    index: int,
    base_day_ms: int,
    channel_times_ms: Optional[np.ndarray] = None,
    shared_times_ms: Optional[np.ndarray] = None,
    shift: Optional[ShiftBounds] = None,
) -> float:
    """Resolve the unaligned time of a sample.

    Own time first, then the channel's time array by index, then the
    payload's shared time array by index. NaN when nothing resolves.
    """
    raw = _first_given(sample.timestamp, sample.time)
    if raw is not None:
        return parse_shift_timestamp_ms(raw, base_day_ms, shift)
    if channel_times_ms is not None and index < len(channel_times_ms):
        return float(channel_times_ms[index])
    if shared_times_ms is not None and index < len(shared_times_ms):
        return float(shared_times_ms[index])
    return math.nan


def _resolve_times(
    channel: Channel,
    base_day_ms: int,
    shared_times_ms: Optional[np.ndarray],
    shift: Optional[ShiftBounds],
) -> np.ndarray:
    channel_times = None
    if channel.times is not None:
        channel_times = parse_shift_timestamps(channel.times, base_day_ms, shift)
    return np.array(
        [
            sample_time_ms(sample, i, base_day_ms, channel_times, shared_times_ms, shift)
            for i, sample in enumerate(channel.samples)
        ],
        dtype="float64",
    )


def collapse_duplicates(points: pd.DataFrame) -> pd.DataFrame:
    """Sort by time and keep the last write for each timestamp."""
    ordered = points.sort_values("timestamp_ms", kind="mergesort")
    return ordered.drop_duplicates(subset="timestamp_ms", keep="last").reset_index(drop=True)


def normalize_analog(
    channel: Channel,
    *,
    bucket_ms: int,
    base_day_ms: int,
    shared_times_ms: Optional[np.ndarray] = None,
    shift: Optional[ShiftBounds] = None,
    logger: Optional[Union[logging.Logger, logging.LoggerAdapter]] = None,
) -> pd.DataFrame:
    """Scale an analog channel into ``timestamp_ms, avg, min, max``.

    A sample without a usable average, or whose scaled avg/min/max is not
    finite, is kept as a fully missing point.
    """
    log = stage_logger("normalize", logger, channel_id=channel.id)
    if not channel.samples:
        return empty_frame(ANALOG_COLUMNS)

    times = _resolve_times(channel, base_day_ms, shared_times_ms, shift)
    avg_raw = np.array(
        [to_number(_first_given(s.avg, s.value, s.val)) for s in channel.samples], dtype="float64"
    )
    min_raw = np.array(
        [to_number(_first_given(s.min, s.avg, s.value, s.val)) for s in channel.samples], dtype="float64"
    )
    max_raw = np.array(
        [to_number(_first_given(s.max, s.avg, s.value, s.val)) for s in channel.samples], dtype="float64"
    )

    with np.errstate(over="ignore", invalid="ignore"):
        avg = avg_raw * channel.resolution + channel.offset
        low = min_raw * channel.resolution + channel.offset
        high = max_raw * channel.resolution + channel.offset
    present = np.isfinite(avg) & np.isfinite(low) & np.isfinite(high)
    avg[~present] = np.nan
    low[~present] = np.nan
    high[~present] = np.nan

    timed = np.isfinite(times)
    dropped = int((~timed).sum())
    points = pd.DataFrame({
        "timestamp_ms": align_array(times[timed], bucket_ms),
        "avg": avg[timed],
        "min": low[timed],
        "max": high[timed],
    })
    points = collapse_duplicates(points)
    log.debug(
        "Normalized analog channel",
        extra={"points": len(points), "missing": int((~present[timed]).sum()), "untimed": dropped},
    )
    return points


def normalize_digital(
    channel: Channel,
    *,
    bucket_ms: int,
    base_day_ms: int,
    shared_times_ms: Optional[np.ndarray] = None,
    shift: Optional[ShiftBounds] = None,
    logger: Optional[Union[logging.Logger, logging.LoggerAdapter]] = None,
) -> pd.DataFrame:
    """Digital channel into ``timestamp_ms, value``; non-numeric samples are omitted."""
    log = stage_logger("normalize", logger, channel_id=channel.id)
    if not channel.samples:
        return empty_frame(DIGITAL_COLUMNS)

    times = _resolve_times(channel, base_day_ms, shared_times_ms, shift)
    values = np.array(
        [to_number(_first_given(s.value, s.avg, s.val)) for s in channel.samples], dtype="float64"
    )
    keep = np.isfinite(times) & np.isfinite(values)
    points = pd.DataFrame({
        "timestamp_ms": align_array(times[keep], bucket_ms),
        "value": values[keep],
    })
    points = collapse_duplicates(points)
    log.debug(
        "Normalized digital channel",
        extra={"points": len(points), "omitted": int((~keep).sum())},
    )
    return points


def normalize(channel: Channel, **kwargs: Any) -> pd.DataFrame:
    if channel.kind == ChannelKind.DIGITAL:
        return normalize_digital(channel, **kwargs)
    return normalize_analog(channel, **kwargs)

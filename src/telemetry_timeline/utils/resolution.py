import logging
import math
from typing import Optional, Union

import numpy as np

from ..app_settings import AppSettings, app_settings
from ..entities.payload import TelemetryPayload
from ..enums.sampling import ViewResolution
from .timestamps import has_nonzero_seconds
from .tracing import stage_logger

SECOND_DELTA_MS = 1000


def align(timestamp_ms: float, bucket_ms: int) -> int:
    """Floor a timestamp to its bucket start."""
    return int(math.floor(timestamp_ms / bucket_ms)) * bucket_ms


def align_array(timestamps_ms: np.ndarray, bucket_ms: int) -> np.ndarray:
    """Vectorized :func:`align`; input must be finite."""
    values = np.asarray(timestamps_ms, dtype="float64")
    return (np.floor(values / bucket_ms) * bucket_ms).astype("int64")


def smallest_positive_delta(sorted_ms: np.ndarray, scan_limit: int = 2000) -> float:
    """Smallest strictly positive delta among the first ``scan_limit`` pairs.

    Stops as soon as a delta of one second or less is seen.
    """
    smallest = math.inf
    upper = min(len(sorted_ms), scan_limit)
    for i in range(1, upper):
        delta = sorted_ms[i] - sorted_ms[i - 1]
        if 0 < delta < smallest:
            smallest = float(delta)
            if smallest <= SECOND_DELTA_MS:
                break
    return smallest


def point_times_have_seconds(payload: TelemetryPayload, max_series: int = 5, max_points: int = 200) -> bool:
    for series_list in payload.series_lists():
        for channel in series_list[:max_series]:
            for sample in channel.points[:max_points]:
                if has_nonzero_seconds(sample.time):
                    return True
    return False


def detect_resolution(
    payload: TelemetryPayload,
    sorted_ms: np.ndarray,
    settings: AppSettings = app_settings,
    logger: Optional[Union[logging.Logger, logging.LoggerAdapter]] = None,
) -> ViewResolution:
    """Decide between second and minute view for a freshly parsed payload."""
    log = stage_logger("resolution", logger)
    if payload.has_per_second_series:
        log.debug("Per-second series present")
        return ViewResolution.SECOND

    smallest = smallest_positive_delta(sorted_ms, settings.resolution_scan_limit)
    if smallest < settings.minute_bucket_ms:
        log.debug(f"Smallest timestamp delta {smallest} ms is below one minute")
        return ViewResolution.SECOND

    if point_times_have_seconds(payload, settings.point_time_scan_series, settings.point_time_scan_points):
        log.debug("Point times carry non-zero seconds")
        return ViewResolution.SECOND

    return ViewResolution.MINUTE


def bucket_ms_for(resolution: ViewResolution, settings: AppSettings = app_settings) -> int:
    if resolution == ViewResolution.SECOND:
        return settings.second_bucket_ms
    return settings.minute_bucket_ms

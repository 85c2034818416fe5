import logging
from typing import Iterable, Optional, Union

import pandas as pd

from ..entities.window import Domain
from ..exceptions.timeline_exceptions import DegenerateDomainError
from .tracing import stage_logger


def data_extent(frames: Iterable[pd.DataFrame]) -> Domain:
    """First and last timestamp over all channels.

    Raises:
        DegenerateDomainError: when there is no point or the extent has zero width.
    """
    lows, highs = [], []
    for points in frames:
        if len(points):
            lows.append(int(points["timestamp_ms"].iloc[0]))
            highs.append(int(points["timestamp_ms"].iloc[-1]))
    if not lows:
        raise DegenerateDomainError("No timestamps in loaded channels")
    low, high = min(lows), max(highs)
    if high <= low:
        raise DegenerateDomainError(f"Data extent has zero width at {low}")
    return Domain(min_ms=low, max_ms=high)


def resolve_domain(
    frames: Iterable[pd.DataFrame],
    shift: Domain,
    logger: Optional[Union[logging.Logger, logging.LoggerAdapter]] = None,
) -> Domain:
    """Union of the data extent and the shift; the shift alone when data is degenerate."""
    try:
        extent = data_extent(frames)
    except DegenerateDomainError as e:
        stage_logger("domain", logger).warning(f"Falling back to shift bounds: {e}")
        return Domain(min_ms=shift.min_ms, max_ms=shift.max_ms, is_fallback=True)
    return Domain(min_ms=min(extent.min_ms, shift.min_ms), max_ms=max(extent.max_ms, shift.max_ms))

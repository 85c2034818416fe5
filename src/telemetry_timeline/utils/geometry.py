from typing import NamedTuple, Optional

from ..entities.window import TimeWindow


class Margins(NamedTuple):
    """Horizontal plot margins in pixels."""
    left: float = 0.0
    right: float = 0.0


def _inner_width(plot_width_px: float, margins: Margins) -> float:
    return max(1.0, plot_width_px - margins.left - margins.right)


def pixel_x(
    window: Optional[TimeWindow],
    cursor_ms: Optional[float],
    plot_width_px: float,
    margins: Margins = Margins(),
) -> Optional[float]:
    """Horizontal pixel of the cursor inside the plot area, clamped to its edges."""
    if window is None or cursor_ms is None or window.end_ms <= window.start_ms:
        return None
    fraction = (cursor_ms - window.start_ms) / (window.end_ms - window.start_ms)
    fraction = max(0.0, min(1.0, fraction))
    return margins.left + _inner_width(plot_width_px, margins) * fraction


def time_at_pixel(
    window: Optional[TimeWindow],
    x_px: float,
    plot_width_px: float,
    margins: Margins = Margins(),
) -> Optional[int]:
    """Inverse of :func:`pixel_x` for pointer positions."""
    if window is None or window.end_ms <= window.start_ms:
        return None
    fraction = (x_px - margins.left) / _inner_width(plot_width_px, margins)
    fraction = max(0.0, min(1.0, fraction))
    return int(round(window.start_ms + fraction * (window.end_ms - window.start_ms)))

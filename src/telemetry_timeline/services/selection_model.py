import logging
from typing import Optional

from ..app_settings import AppSettings, app_settings
from ..entities.window import Domain, SelectionState, TimeWindow
from ..exceptions.timeline_exceptions import DataNotLoadedError
from ..utils.events import CursorChanged, SelectionChanged, TimelineEvents
from ..utils.geometry import Margins, pixel_x
from ..utils.shift import centered_window

logger = logging.getLogger(__name__)


def clamp_window(start_ms: int, end_ms: int, domain: Domain, min_window_ms: int) -> TimeWindow:
    """Order, extend and clamp a requested window into the domain.

    A domain no longer than ``min_window_ms`` yields the whole domain.
    Otherwise the window keeps at least ``min_window_ms``, sliding back from
    the domain end when it cannot grow forward.
    """
    start, end = min(start_ms, end_ms), max(start_ms, end_ms)
    if end - start < min_window_ms:
        end = start + min_window_ms

    if domain.span_ms <= min_window_ms:
        return domain.as_window()

    start = max(start, domain.min_ms)
    end = min(end, domain.max_ms)
    if end - start < min_window_ms:
        if start + min_window_ms <= domain.max_ms:
            end = start + min_window_ms
        else:
            end = domain.max_ms
            start = end - min_window_ms
    return TimeWindow(start_ms=start, end_ms=end)


def fit_cursor(cursor_ms: Optional[int], window: TimeWindow) -> int:
    """Midpoint when unset, otherwise pulled back inside the window."""
    if cursor_ms is None:
        return window.midpoint_ms
    if cursor_ms < window.start_ms:
        return window.start_ms
    if cursor_ms > window.end_ms:
        return window.end_ms
    return cursor_ms


class SelectionModel:
    """Owns the selection window and cursor of one timeline."""

    def __init__(self, settings: AppSettings = app_settings, events: Optional[TimelineEvents] = None):
        self.settings = settings
        self.events = events or TimelineEvents()
        self._domain: Optional[Domain] = None
        self._window: Optional[TimeWindow] = None
        self._cursor_ms: Optional[int] = None

    @property
    def domain(self) -> Optional[Domain]:
        return self._domain

    @property
    def window(self) -> Optional[TimeWindow]:
        return self._window

    @property
    def cursor_ms(self) -> Optional[int]:
        return self._cursor_ms

    def _require_domain(self) -> Domain:
        if self._domain is None:
            raise DataNotLoadedError("Selection has no domain; load telemetry first")
        return self._domain

    def initialize(self, domain: Domain, center_ms: Optional[float] = None) -> SelectionState:
        """Reset to a fixed-length window around ``center_ms`` (domain midpoint by default)."""
        self._domain = domain
        initial = centered_window(domain.min_ms, domain.max_ms, self.settings.initial_window_ms, center_ms)
        self._window = clamp_window(initial.start_ms, initial.end_ms, domain, self.settings.min_window_ms)
        self._cursor_ms = self._window.midpoint_ms
        logger.debug(f"Selection initialized to {self._window} in {domain}")
        self._publish_selection()
        return self.state()

    def reset(self) -> None:
        self._window = None
        self._cursor_ms = None
        self._domain = None
        self._publish_selection()

    def on_cursor_change(self, timestamp_ms: int) -> SelectionState:
        domain = self._require_domain()
        self._cursor_ms = domain.clamp(int(timestamp_ms))
        self.events.cursor_changed.publish(CursorChanged(self._cursor_ms))
        return self.state()

    def on_selection_change(self, start_ms: int, end_ms: int) -> SelectionState:
        domain = self._require_domain()
        self._window = clamp_window(int(start_ms), int(end_ms), domain, self.settings.min_window_ms)
        self._cursor_ms = fit_cursor(self._cursor_ms, self._window)
        self._publish_selection()
        return self.state()

    def state(self, plot_width_px: Optional[float] = None, margins: Margins = Margins()) -> SelectionState:
        x = None
        if plot_width_px is not None:
            x = pixel_x(self._window, self._cursor_ms, plot_width_px, margins)
        return SelectionState(window=self._window, cursor_ms=self._cursor_ms, domain=self._domain, pixel_x=x)

    def _publish_selection(self) -> None:
        self.events.selection_changed.publish(SelectionChanged(self._window, self._cursor_ms))

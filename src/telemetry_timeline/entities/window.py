from typing import Optional

from pydantic import BaseModel


class TimeWindow(BaseModel):
    """Closed time interval in epoch milliseconds."""
    start_ms: int
    end_ms: int

    class Config:
        frozen = True

    @property
    def span_ms(self) -> int:
        return self.end_ms - self.start_ms

    @property
    def midpoint_ms(self) -> int:
        return self.start_ms + (self.end_ms - self.start_ms) // 2


class Domain(BaseModel):
    """Full navigable time range of the loaded data."""
    min_ms: int
    max_ms: int
    is_fallback: bool = False

    class Config:
        frozen = True

    @property
    def span_ms(self) -> int:
        return self.max_ms - self.min_ms

    def clamp(self, timestamp_ms: int) -> int:
        return max(self.min_ms, min(self.max_ms, timestamp_ms))

    def as_window(self) -> TimeWindow:
        return TimeWindow(start_ms=self.min_ms, end_ms=self.max_ms)


class SelectionState(BaseModel):
    """Snapshot of the selection model."""
    window: Optional[TimeWindow] = None
    cursor_ms: Optional[int] = None
    domain: Optional[Domain] = None
    pixel_x: Optional[float] = None

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from ..enums.sampling import ChannelKind
from .payload import YAxisRange
from .window import TimeWindow


class AnalogPoint(BaseModel):
    """Normalized analog point; ``None`` marks a missing sample or break."""
    timestamp_ms: int
    avg: Optional[float] = None
    min: Optional[float] = None
    max: Optional[float] = None


class DigitalPoint(BaseModel):
    """Normalized digital point."""
    timestamp_ms: int
    value: Optional[float] = None


class ChannelStats(BaseModel):
    """Average/min/max over a window; all ``None`` when nothing is present."""
    avg: Optional[float] = None
    min: Optional[float] = None
    max: Optional[float] = None

    @property
    def is_empty(self) -> bool:
        return self.avg is None


class AnalogMetric(BaseModel):
    """Windowed analog channel ready for rendering."""
    id: str
    name: str
    unit: str = ""
    color: str
    min_color: Optional[str] = None
    max_color: Optional[str] = None
    resolution: float = 1.0
    offset: float = 0.0
    y_axis_range: Optional[YAxisRange] = None
    current_value: Optional[float] = None
    avg: Optional[float] = None
    min: Optional[float] = None
    max: Optional[float] = None
    original_points: int = 0
    returned_points: int = 0
    data: List[AnalogPoint] = Field(default_factory=list)


class DigitalMetric(BaseModel):
    """Windowed digital channel ready for rendering."""
    id: str
    name: str
    color: str
    current_value: Optional[float] = None
    data: List[DigitalPoint] = Field(default_factory=list)


class UnionRow(BaseModel):
    """One row of a shared multi-channel time axis."""
    timestamp_ms: int
    values: Dict[str, Optional[float]] = Field(default_factory=dict)


class ProcessedData(BaseModel):
    """Result of a load or re-windowing pass."""
    analog_metrics: List[AnalogMetric] = Field(default_factory=list)
    digital_metrics: List[DigitalMetric] = Field(default_factory=list)
    digital_axis: List[UnionRow] = Field(default_factory=list)
    timestamps: List[int] = Field(default_factory=list)
    bucket_ms: Optional[int] = None
    is_second_view: bool = False
    window: Optional[TimeWindow] = None


class CursorValue(BaseModel):
    """Values of one channel under the cursor."""
    channel_id: str
    kind: ChannelKind
    timestamp_ms: Optional[int] = None
    avg: Optional[float] = None
    min: Optional[float] = None
    max: Optional[float] = None
    value: Optional[float] = None


class CursorReadout(BaseModel):
    """Per-channel values at the current cursor."""
    cursor_ms: Optional[int] = None
    analog: List[CursorValue] = Field(default_factory=list)
    digital: List[CursorValue] = Field(default_factory=list)

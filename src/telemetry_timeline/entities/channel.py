from typing import Any, Optional, Tuple, Union

from pydantic import BaseModel

from ..enums.sampling import ChannelKind
from .payload import ChannelPayload, RawSample, YAxisRange

DEFAULT_ANALOG_COLOR = "#2563eb"
DEFAULT_DIGITAL_COLOR = "#999"


def is_displayed(display: Any) -> bool:
    """A channel is hidden only by an explicit boolean or string ``false``."""
    if display is False:
        return False
    if isinstance(display, str) and display.strip().lower() == "false":
        return False
    return True


class Channel(BaseModel):
    """Immutable channel metadata plus its raw samples."""
    id: str
    name: str
    kind: ChannelKind
    unit: str = ""
    color: str
    min_color: Optional[str] = None
    max_color: Optional[str] = None
    resolution: float = 1.0
    offset: float = 0.0
    y_axis_range: Optional[YAxisRange] = None
    visible: bool = True
    samples: Tuple[RawSample, ...] = ()
    times: Optional[Tuple[Optional[Union[str, float]], ...]] = None

    class Config:
        frozen = True

    @classmethod
    def from_payload(cls, payload: ChannelPayload, kind: ChannelKind) -> "Channel":
        default_color = DEFAULT_ANALOG_COLOR if kind == ChannelKind.ANALOG else DEFAULT_DIGITAL_COLOR
        return cls(
            id=str(payload.id),
            name=str(payload.name) if payload.name is not None else str(payload.id),
            kind=kind,
            unit=payload.unit or "",
            color=payload.color or default_color,
            min_color=payload.min_color,
            max_color=payload.max_color,
            resolution=payload.resolution if payload.resolution is not None else 1.0,
            offset=payload.offset if payload.offset is not None else 0.0,
            y_axis_range=payload.y_axis_range,
            visible=is_displayed(payload.display),
            samples=tuple(payload.points),
            times=tuple(payload.times) if payload.times is not None else None,
        )

    @property
    def numeric_id(self) -> int:
        """Digits of the id, used to order digital channels."""
        digits = "".join(ch for ch in self.id if ch.isdigit())
        return int(digits) if digits else 0


class DataSourceKey(BaseModel):
    """Identifies one remote load: vehicle, date and shift."""
    vehicle_id: str
    date: Optional[str] = None
    shift: Optional[str] = None

    class Config:
        frozen = True

    def with_bucket(self, bucket_ms: int) -> "CacheKey":
        return CacheKey(vehicle_id=self.vehicle_id, date=self.date, shift=self.shift, bucket_ms=bucket_ms)


class CacheKey(DataSourceKey):
    """Data source plus the bucket size the series were aligned to."""
    bucket_ms: int

    @property
    def source(self) -> DataSourceKey:
        return DataSourceKey(vehicle_id=self.vehicle_id, date=self.date, shift=self.shift)

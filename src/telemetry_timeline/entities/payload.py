from collections.abc import Mapping
from typing import Any, List, Optional, Union

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from ..exceptions.timeline_exceptions import MalformedPayloadError


class YAxisRange(BaseModel):
    """Fixed y-axis bounds requested by the payload."""
    min: float
    max: float


class RawSample(BaseModel):
    """One ingested record of a channel.

    Values are kept as sent; coercion to numbers happens during normalization
    so that non-numeric values degrade to missing samples instead of failing
    the whole payload.
    """
    time: Optional[Union[str, float]] = None
    timestamp: Optional[Union[str, float]] = None
    avg: Any = None
    min: Any = None
    max: Any = None
    value: Any = None
    val: Any = None

    class Config:
        extra = "ignore"


class ChannelPayload(BaseModel):
    """Channel-like object as found in the per-second/per-minute lists."""
    id: Union[str, int]
    name: Optional[Union[str, int]] = None
    unit: Optional[str] = None
    color: Optional[str] = None
    min_color: Optional[str] = None
    max_color: Optional[str] = None
    resolution: Optional[float] = None
    offset: Optional[float] = None
    y_axis_range: Optional[YAxisRange] = Field(default=None, alias="yAxisRange")
    display: Any = None
    points: List[RawSample] = Field(default_factory=list)
    times: Optional[List[Optional[Union[str, float]]]] = None

    class Config:
        populate_by_name = True
        extra = "ignore"

    @field_validator("points", mode="before")
    @classmethod
    def _coerce_points(cls, value: Any) -> Any:
        # Bare numbers are samples whose time comes from a time array.
        if value is None:
            return []
        if not isinstance(value, list):
            raise ValueError("points must be a list")
        coerced = []
        for item in value:
            if item is None:
                continue
            if isinstance(item, (int, float)) and not isinstance(item, bool):
                coerced.append({"value": item})
            else:
                coerced.append(item)
        return coerced


class TimestampEntry(BaseModel):
    """Entry of the payload-level time axis."""
    time: Optional[Union[str, float]] = None
    timestamp: Optional[Union[str, float]] = None

    @property
    def raw(self) -> Optional[Union[str, float]]:
        return self.timestamp if self.timestamp is not None else self.time


class TelemetryPayload(BaseModel):
    """Parsed telemetry response for one vehicle, date and shift."""
    timestamps: List[TimestampEntry] = Field(default_factory=list)
    analog_per_second: List[ChannelPayload] = Field(default_factory=list, alias="analogPerSecond")
    analog_per_minute: List[ChannelPayload] = Field(default_factory=list, alias="analogPerMinute")
    digital_per_second: List[ChannelPayload] = Field(default_factory=list, alias="digitalPerSecond")
    digital_per_minute: List[ChannelPayload] = Field(default_factory=list, alias="digitalPerMinute")

    class Config:
        populate_by_name = True
        extra = "ignore"

    @model_validator(mode="before")
    @classmethod
    def _legacy_time_axis(cls, data: Any) -> Any:
        if isinstance(data, Mapping) and data.get("timestamps") is None:
            for legacy in ("times", "timeStamps"):
                if data.get(legacy) is not None:
                    data = dict(data)
                    data["timestamps"] = data[legacy]
                    break
        return data

    @field_validator("timestamps", mode="before")
    @classmethod
    def _coerce_timestamps(cls, value: Any) -> Any:
        if value is None:
            return []
        if not isinstance(value, list):
            raise ValueError("timestamps must be a list")
        return [
            {"timestamp": item} if isinstance(item, (str, int, float)) and not isinstance(item, bool) else item
            for item in value
            if item is not None
        ]

    @field_validator(
        "analog_per_second", "analog_per_minute", "digital_per_second", "digital_per_minute",
        mode="before",
    )
    @classmethod
    def _null_series_list(cls, value: Any) -> Any:
        return [] if value is None else value

    @property
    def has_per_second_series(self) -> bool:
        return bool(self.analog_per_second) or bool(self.digital_per_second)

    def series_lists(self) -> List[List[ChannelPayload]]:
        return [
            self.analog_per_minute,
            self.digital_per_minute,
            self.analog_per_second,
            self.digital_per_second,
        ]


def parse_payload(raw: Any) -> TelemetryPayload:
    """Validate an already-decoded JSON payload.

    Raises:
        MalformedPayloadError: if the payload is not an object or does not
            match the expected shape.
    """
    if isinstance(raw, TelemetryPayload):
        return raw
    if not isinstance(raw, Mapping):
        raise MalformedPayloadError(
            f"Telemetry payload must be a JSON object, got {type(raw).__name__}"
        )
    try:
        return TelemetryPayload.model_validate(raw)
    except ValidationError as e:
        raise MalformedPayloadError(
            f"Telemetry payload failed validation ({e.error_count()} errors): {e.errors()[0]['msg']}"
        ) from e

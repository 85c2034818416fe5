from dataclasses import dataclass
from typing import Tuple

import numpy as np
import pandas as pd

from ..enums.sampling import ChannelKind, ViewResolution
from ..exceptions.timeline_exceptions import ChannelNotFoundError
from ..utils.shift import ShiftBounds
from .channel import CacheKey, Channel, DataSourceKey
from .payload import TelemetryPayload
from .window import Domain


@dataclass(frozen=True, eq=False)
class NormalizedChannel:
    """A channel and its aligned point frame (NaN marks absence)."""
    channel: Channel
    points: pd.DataFrame

    @property
    def id(self) -> str:
        return self.channel.id

    @property
    def kind(self) -> ChannelKind:
        return self.channel.kind


@dataclass(frozen=True, eq=False)
class LoadPlan:
    """Everything decided about a payload before its channels are normalized."""
    key: DataSourceKey
    payload: TelemetryPayload
    resolution: ViewResolution
    bucket_ms: int
    base_day_ms: int
    shift: ShiftBounds
    shift_domain: Domain
    shared_times_ms: np.ndarray
    timestamps_ms: np.ndarray
    analog_sources: Tuple[Channel, ...]
    digital_sources: Tuple[Channel, ...]

    @property
    def cache_key(self) -> CacheKey:
        return self.key.with_bucket(self.bucket_ms)


@dataclass(frozen=True, eq=False)
class NormalizedDataset:
    """Normalized channels of one load at one bucket size."""
    key: CacheKey
    bucket_ms: int
    analog: Tuple[NormalizedChannel, ...]
    digital: Tuple[NormalizedChannel, ...]
    timestamps_ms: np.ndarray
    domain: Domain
    shift_domain: Domain

    @property
    def channels(self) -> Tuple[NormalizedChannel, ...]:
        return self.analog + self.digital

    def channel(self, channel_id: str) -> NormalizedChannel:
        for normalized in self.channels:
            if normalized.id == channel_id:
                return normalized
        raise ChannelNotFoundError(f"Channel {channel_id} not found")

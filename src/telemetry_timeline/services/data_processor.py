import logging
from typing import Any, List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from ..app_settings import AppSettings, app_settings
from ..entities.channel import CacheKey, Channel, DataSourceKey
from ..entities.metrics import (
    AnalogMetric,
    AnalogPoint,
    CursorReadout,
    DigitalMetric,
    DigitalPoint,
    ProcessedData,
)
from ..entities.payload import ChannelPayload, TelemetryPayload, parse_payload
from ..entities.series import LoadPlan, NormalizedChannel, NormalizedDataset
from ..entities.window import TimeWindow
from ..enums.sampling import ChannelKind, DecimationMethod, ViewResolution
from ..exceptions.timeline_exceptions import DataNotLoadedError
from ..repos.series_cache import SeriesCache
from ..utils.decimate import decimate, decimation_bucket_size
from ..utils.domain import resolve_domain
from ..utils.frames import frame_records
from ..utils.gaps import insert_breaks
from ..utils.normalize import normalize
from ..utils.resolution import align_array, bucket_ms_for, detect_resolution
from ..utils.shift import (
    parse_date_to_utc_day_start_ms,
    parse_shift,
    parse_shift_timestamps,
    resolve_base_day_ms,
    shift_domain,
)
from ..utils.stats import current_value, digital_value_at, value_at, window_stats
from ..utils.timestamps import parse_timestamps
from ..utils.tracing import stage_logger
from ..utils.union_axis import build_union_axis, filter_window

LoggerLike = Union[logging.Logger, logging.LoggerAdapter]


def select_series(payload: TelemetryPayload, resolution: ViewResolution) -> Tuple[List[ChannelPayload], List[ChannelPayload]]:
    """Analog and digital channel lists for the view, falling back to the other cadence."""
    if resolution == ViewResolution.SECOND:
        analog = payload.analog_per_second or payload.analog_per_minute
        digital = payload.digital_per_second or payload.digital_per_minute
    else:
        analog = payload.analog_per_minute or payload.analog_per_second
        digital = payload.digital_per_minute or payload.digital_per_second
    return analog, digital


def order_digital(channels: Sequence[Channel]) -> List[Channel]:
    """Descending by the numeric part of the id."""
    return list(reversed(sorted(channels, key=lambda channel: channel.numeric_id)))


class DataProcessor:
    """Turns telemetry payloads into windowed, render-ready series.

    Normalized channels are kept in a :class:`SeriesCache` so that later
    windows of the same load are cut without re-normalizing.
    """

    def __init__(
        self,
        settings: AppSettings = app_settings,
        cache: Optional[SeriesCache] = None,
        logger: Optional[LoggerLike] = None,
    ):
        self.settings = settings
        self.cache = cache if cache is not None else SeriesCache()
        self.logger = logger
        self._current: Optional[CacheKey] = None

    @property
    def current_key(self) -> Optional[CacheKey]:
        return self._current

    @property
    def current_dataset(self) -> Optional[NormalizedDataset]:
        if self._current is None:
            return None
        return self.cache.get(self._current)

    def clear_cache(self) -> int:
        self._current = None
        return self.cache.clear()

    def plan(
        self,
        raw: Any,
        key: DataSourceKey,
        selected_date: Optional[str] = None,
        logger: Optional[LoggerLike] = None,
    ) -> LoadPlan:
        """Parse the payload and fix cadence, base day and channel order."""
        log = stage_logger("plan", logger or self.logger, vehicle_id=key.vehicle_id)
        payload = parse_payload(raw)
        selected_date = selected_date or key.date

        shift = parse_shift(key.shift or self.settings.default_shift)
        labels = [entry.raw for entry in payload.timestamps]

        provisional = parse_timestamps(labels, parse_date_to_utc_day_start_ms(selected_date))
        base_day_ms = resolve_base_day_ms(np.sort(provisional[np.isfinite(provisional)]), selected_date)
        shared = parse_shift_timestamps(labels, base_day_ms, shift)
        parsed = np.sort(shared[np.isfinite(shared)])

        resolution = detect_resolution(payload, parsed, self.settings, log)
        bucket_ms = bucket_ms_for(resolution, self.settings)

        analog_payloads, digital_payloads = select_series(payload, resolution)
        analog = [Channel.from_payload(p, ChannelKind.ANALOG) for p in analog_payloads]
        digital = [Channel.from_payload(p, ChannelKind.DIGITAL) for p in digital_payloads]
        hidden = [c.id for c in analog + digital if not c.visible]
        if hidden:
            log.debug(f"Skipping hidden channels: {', '.join(hidden)}")

        plan = LoadPlan(
            key=key,
            payload=payload,
            resolution=resolution,
            bucket_ms=bucket_ms,
            base_day_ms=base_day_ms,
            shift=shift,
            shift_domain=shift_domain(base_day_ms, shift),
            shared_times_ms=shared,
            timestamps_ms=np.unique(align_array(parsed, bucket_ms)),
            analog_sources=tuple(c for c in analog if c.visible),
            digital_sources=tuple(order_digital([c for c in digital if c.visible])),
        )
        log.info(
            f"Planned load: {resolution.value} view, {len(plan.analog_sources)} analog, "
            f"{len(plan.digital_sources)} digital channels",
            extra={"bucket_ms": bucket_ms, "timestamps": len(plan.timestamps_ms)},
        )
        return plan

    def normalize_channels(
        self,
        plan: LoadPlan,
        channels: Sequence[Channel],
        logger: Optional[LoggerLike] = None,
    ) -> List[NormalizedChannel]:
        """Normalize and gap-break a batch of channels from ``plan``."""
        log = logger or self.logger
        normalized = []
        for channel in channels:
            points = normalize(
                channel,
                bucket_ms=plan.bucket_ms,
                base_day_ms=plan.base_day_ms,
                shared_times_ms=plan.shared_times_ms,
                shift=plan.shift,
                logger=log,
            )
            points = insert_breaks(points, plan.bucket_ms, plan.bucket_ms * self.settings.gap_factor, logger=log)
            normalized.append(NormalizedChannel(channel=channel, points=points))
        return normalized

    def commit(
        self,
        plan: LoadPlan,
        analog: Sequence[NormalizedChannel],
        digital: Sequence[NormalizedChannel],
        logger: Optional[LoggerLike] = None,
    ) -> NormalizedDataset:
        """Compute the domain and cache the normalized channels."""
        domain = resolve_domain(
            [c.points for c in list(analog) + list(digital)], plan.shift_domain, logger or self.logger
        )
        dataset = NormalizedDataset(
            key=plan.cache_key,
            bucket_ms=plan.bucket_ms,
            analog=tuple(analog),
            digital=tuple(digital),
            timestamps_ms=plan.timestamps_ms,
            domain=domain,
            shift_domain=plan.shift_domain,
        )
        self.cache.put(dataset)
        self._current = dataset.key
        return dataset

    def load(
        self,
        raw: Any,
        key: DataSourceKey,
        selected_date: Optional[str] = None,
    ) -> NormalizedDataset:
        """Synchronous load: plan, normalize everything, commit."""
        self.clear_cache()
        plan = self.plan(raw, key, selected_date)
        analog = self.normalize_channels(plan, plan.analog_sources)
        digital = self.normalize_channels(plan, plan.digital_sources)
        return self.commit(plan, analog, digital)

    def process_data(
        self,
        raw: Any,
        key: DataSourceKey,
        window_start: Optional[int] = None,
        window_end: Optional[int] = None,
        selected_date: Optional[str] = None,
        max_points: Optional[int] = None,
        method: DecimationMethod = DecimationMethod.ENVELOPE,
    ) -> ProcessedData:
        """Load a payload and cut the requested window (everything when no window)."""
        dataset = self.load(raw, key, selected_date)
        window = None
        if window_start is not None and window_end is not None:
            window = TimeWindow(start_ms=min(window_start, window_end), end_ms=max(window_start, window_end))
        return self.build_window(dataset, window, max_points, method)

    def get_window(
        self,
        window_start: int,
        window_end: int,
        is_second_view: Optional[bool] = None,
        key: Optional[DataSourceKey] = None,
        max_points: Optional[int] = None,
        method: DecimationMethod = DecimationMethod.ENVELOPE,
    ) -> ProcessedData:
        """Re-window cached series without re-normalizing.

        Raises:
            DataNotLoadedError: when nothing is cached for the key and cadence.
        """
        dataset = self.cached_dataset(is_second_view, key)
        window = TimeWindow(start_ms=min(window_start, window_end), end_ms=max(window_start, window_end))
        return self.build_window(dataset, window, max_points, method)

    def cached_dataset(
        self,
        is_second_view: Optional[bool] = None,
        key: Optional[DataSourceKey] = None,
    ) -> NormalizedDataset:
        current = self._current
        source = key or (current.source if current is not None else None)
        if source is None:
            raise DataNotLoadedError("No telemetry has been loaded")
        if is_second_view is None:
            if current is None:
                raise DataNotLoadedError(f"No cached series for {source}")
            bucket_ms = current.bucket_ms
        else:
            resolution = ViewResolution.SECOND if is_second_view else ViewResolution.MINUTE
            bucket_ms = bucket_ms_for(resolution, self.settings)
        dataset = self.cache.get(source.with_bucket(bucket_ms))
        if dataset is None:
            raise DataNotLoadedError(f"No cached series for {source} at {bucket_ms} ms")
        return dataset

    def channel_window(
        self,
        dataset: NormalizedDataset,
        channel_id: str,
        window: Optional[TimeWindow],
        max_points: Optional[int] = None,
        method: DecimationMethod = DecimationMethod.ENVELOPE,
    ) -> Tuple[pd.DataFrame, int]:
        """Windowed (and optionally decimated) points of one channel plus the pre-decimation count."""
        normalized = dataset.channel(channel_id)
        points = filter_window(normalized.points, window, self.settings.window_pad_ms)
        original = len(points)
        if max_points is not None and len(points) > max_points:
            step = decimation_bucket_size(len(points), max_points)
            points = decimate(points, max_points, method)
            spacing = dataset.bucket_ms * step
            points = insert_breaks(points, spacing, spacing * self.settings.gap_factor, logger=self.logger)
        return points, original

    def build_window(
        self,
        dataset: NormalizedDataset,
        window: Optional[TimeWindow],
        max_points: Optional[int] = None,
        method: DecimationMethod = DecimationMethod.ENVELOPE,
    ) -> ProcessedData:
        log = stage_logger("window", self.logger, bucket_ms=dataset.bucket_ms)
        analog_metrics = []
        for normalized in dataset.analog:
            channel = normalized.channel
            points, original = self.channel_window(dataset, channel.id, window, max_points, method)
            stats = window_stats(normalized.points, window)
            full = window_stats(normalized.points)
            y_range = channel.y_axis_range
            if y_range is None and not full.is_empty:
                y_range = {"min": full.min, "max": full.max}
            analog_metrics.append(AnalogMetric(
                id=channel.id,
                name=channel.name,
                unit=channel.unit,
                color=channel.color,
                min_color=channel.min_color,
                max_color=channel.max_color,
                resolution=channel.resolution,
                offset=channel.offset,
                y_axis_range=y_range,
                current_value=current_value(normalized.points),
                avg=stats.avg,
                min=stats.min,
                max=stats.max,
                original_points=original,
                returned_points=len(points),
                data=[AnalogPoint(**record) for record in frame_records(points)],
            ))

        digital_metrics = []
        for normalized in dataset.digital:
            channel = normalized.channel
            points = filter_window(normalized.points, window, self.settings.window_pad_ms)
            digital_metrics.append(DigitalMetric(
                id=channel.id,
                name=channel.name,
                color=channel.color,
                current_value=current_value(normalized.points),
                data=[DigitalPoint(**record) for record in frame_records(points)],
            ))

        digital_axis = build_union_axis(
            [(normalized.id, normalized.points) for normalized in dataset.digital],
            window,
            expected_interval_ms=dataset.bucket_ms,
            pad_ms=self.settings.window_pad_ms,
        )

        timestamps = dataset.timestamps_ms
        if window is not None:
            timestamps = timestamps[(timestamps >= window.start_ms) & (timestamps <= window.end_ms)]

        log.debug(
            "Built window",
            extra={"analog": len(analog_metrics), "digital": len(digital_metrics), "rows": len(digital_axis)},
        )
        return ProcessedData(
            analog_metrics=analog_metrics,
            digital_metrics=digital_metrics,
            digital_axis=digital_axis,
            timestamps=[int(ts) for ts in timestamps],
            bucket_ms=dataset.bucket_ms,
            is_second_view=dataset.bucket_ms == self.settings.second_bucket_ms,
            window=window,
        )

    def cursor_readout(self, dataset: NormalizedDataset, cursor_ms: Optional[int]) -> CursorReadout:
        if cursor_ms is None:
            return CursorReadout()
        analog = []
        for normalized in dataset.analog:
            reading = value_at(
                normalized.points,
                cursor_ms,
                bucket_ms=dataset.bucket_ms,
                tolerance_ms=self.settings.cursor_tolerance_ms,
                channel_id=normalized.id,
            )
            if reading is not None:
                analog.append(reading)
        digital = []
        for normalized in dataset.digital:
            reading = digital_value_at(normalized.points, cursor_ms, bucket_ms=dataset.bucket_ms, channel_id=normalized.id)
            if reading is not None:
                digital.append(reading)
        return CursorReadout(cursor_ms=cursor_ms, analog=analog, digital=digital)

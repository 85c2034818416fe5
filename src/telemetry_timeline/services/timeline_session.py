import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, List, Optional, Tuple

from ..app_settings import AppSettings, app_settings
from ..entities.channel import Channel, DataSourceKey
from ..entities.metrics import CursorReadout, ProcessedData
from ..entities.series import LoadPlan, NormalizedChannel
from ..entities.window import SelectionState, TimeWindow
from ..enums.sampling import ChannelKind, DecimationMethod
from ..utils.events import (
    ChunkApplied,
    LoadCompleted,
    LoadFailed,
    LoadStarted,
    RangeCommitted,
    TimelineEvents,
)
from ..utils.scheduling import Debouncer, FrameThrottle
from ..utils.tracing import stage_logger
from .data_processor import DataProcessor
from .selection_model import SelectionModel

logger = logging.getLogger(__name__)

Fetch = Callable[[], Awaitable[Any]]
RangeCommitHandler = Callable[[TimeWindow], Any]


class TimelineSession:
    """Load controller and interaction state for one vehicle timeline.

    Every load gets a new version; results of superseded loads are dropped
    at each await point. Channels are normalized in chunks, yielding to the
    event loop between chunks. Cursor and selection inputs go through a
    frame throttle, and selection changes are committed after a debounce.
    """

    def __init__(
        self,
        vehicle_id: str,
        settings: AppSettings = app_settings,
        processor: Optional[DataProcessor] = None,
        events: Optional[TimelineEvents] = None,
        on_range_commit: Optional[RangeCommitHandler] = None,
    ):
        self.vehicle_id = vehicle_id
        self.settings = settings
        self.events = events or TimelineEvents()
        self.processor = processor or DataProcessor(settings)
        self.selection = SelectionModel(settings, self.events)
        self.on_range_commit = on_range_commit
        self._load_version = 0
        self._cursor_throttle: FrameThrottle[int, SelectionState] = FrameThrottle(
            self.selection.on_cursor_change, settings.frame_interval_ms
        )
        self._selection_throttle: FrameThrottle[Tuple[int, int], SelectionState] = FrameThrottle(
            self._apply_selection, settings.frame_interval_ms
        )
        self._range_commit: Debouncer[TimeWindow] = Debouncer(self._commit_range, settings.range_commit_debounce_ms)

    @property
    def load_version(self) -> int:
        return self._load_version

    def _is_stale(self, version: int) -> bool:
        return version != self._load_version

    async def load(
        self,
        key: DataSourceKey,
        fetch: Fetch,
        selected_date: Optional[str] = None,
        max_points: Optional[int] = None,
        method: DecimationMethod = DecimationMethod.ENVELOPE,
    ) -> Optional[ProcessedData]:
        """Fetch, normalize and publish a payload.

        Returns the initial window, or ``None`` if a newer load superseded
        this one.
        """
        self._load_version += 1
        version = self._load_version
        log = stage_logger("load", load_version=version, vehicle_id=self.vehicle_id)
        self.processor.clear_cache()
        self.events.load_started.publish(LoadStarted(version, key))
        log.info(f"Loading telemetry for {key.vehicle_id} ({key.date}, {key.shift})")

        try:
            raw = await fetch()
            if self._is_stale(version):
                log.debug("Discarding stale payload")
                return None
            plan = self.processor.plan(raw, key, selected_date, logger=log)
        except Exception as e:
            if self._is_stale(version):
                log.debug(f"Discarding failure of superseded load: {e}")
                return None
            log.error(f"Telemetry load failed: {e}")
            self.selection.reset()
            self.events.load_failed.publish(LoadFailed(version, key, str(e)))
            raise

        digital = await self._normalize_in_chunks(plan, ChannelKind.DIGITAL, plan.digital_sources, version, log)
        if digital is None:
            return None
        analog = await self._normalize_in_chunks(plan, ChannelKind.ANALOG, plan.analog_sources, version, log)
        if analog is None:
            return None

        dataset = self.processor.commit(plan, analog, digital, logger=log)
        shift_center = plan.shift_domain.min_ms + plan.shift_domain.span_ms // 2
        self.selection.initialize(dataset.domain, center_ms=dataset.domain.clamp(shift_center))
        self.events.load_completed.publish(LoadCompleted(version, dataset.key, dataset.domain))
        log.info(
            f"Loaded {len(analog)} analog and {len(digital)} digital channels",
            extra={"bucket_ms": dataset.bucket_ms},
        )
        return self.processor.build_window(dataset, self.selection.window, max_points, method)

    async def _normalize_in_chunks(
        self,
        plan: LoadPlan,
        kind: ChannelKind,
        sources: Tuple[Channel, ...],
        version: int,
        log: logging.LoggerAdapter,
    ) -> Optional[List[NormalizedChannel]]:
        chunk_size = max(1, self.settings.chunk_size)
        done: List[NormalizedChannel] = []
        if not sources:
            self.events.chunk_applied.publish(ChunkApplied(version, kind, (), True, 0, 0))
            return done

        for start in range(0, len(sources), chunk_size):
            chunk = self.processor.normalize_channels(plan, sources[start:start + chunk_size], logger=log)
            if self._is_stale(version):
                log.debug("Discarding stale chunk")
                return None
            done.extend(chunk)
            self.events.chunk_applied.publish(ChunkApplied(
                version=version,
                kind=kind,
                channel_ids=tuple(c.id for c in chunk),
                replace=start == 0,
                processed=len(done),
                total=len(sources),
            ))
            await asyncio.sleep(0)
            if self._is_stale(version):
                log.debug("Load superseded between chunks")
                return None
        return done

    async def submit_cursor(self, timestamp_ms: int) -> SelectionState:
        return await self._cursor_throttle.submit(timestamp_ms)

    async def submit_selection(self, start_ms: int, end_ms: int) -> SelectionState:
        return await self._selection_throttle.submit((start_ms, end_ms))

    def _apply_selection(self, bounds: Tuple[int, int]) -> SelectionState:
        state = self.selection.on_selection_change(*bounds)
        self._range_commit.submit(state.window)
        return state

    def _commit_range(self, window: TimeWindow) -> Any:
        logger.debug(f"Committing range {window} for {self.vehicle_id}")
        self.events.range_committed.publish(RangeCommitted(window))
        if self.on_range_commit is not None:
            result = self.on_range_commit(window)
            if inspect.isawaitable(result):
                return result
        return None

    def get_window(
        self,
        window_start: Optional[int] = None,
        window_end: Optional[int] = None,
        is_second_view: Optional[bool] = None,
        max_points: Optional[int] = None,
        method: DecimationMethod = DecimationMethod.ENVELOPE,
    ) -> ProcessedData:
        """Window of the current load; defaults to the selection window."""
        if window_start is None or window_end is None:
            dataset = self.processor.cached_dataset(is_second_view)
            window = self.selection.window or dataset.domain.as_window()
            return self.processor.build_window(dataset, window, max_points, method)
        return self.processor.get_window(window_start, window_end, is_second_view, None, max_points, method)

    def cursor_readout(self) -> CursorReadout:
        dataset = self.processor.cached_dataset()
        return self.processor.cursor_readout(dataset, self.selection.cursor_ms)

    def close(self) -> None:
        self._cursor_throttle.cancel()
        self._selection_throttle.cancel()
        self._range_commit.cancel()

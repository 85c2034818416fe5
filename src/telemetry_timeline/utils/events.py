from dataclasses import dataclass, field
from typing import Callable, Generic, List, Optional, Tuple, TypeVar

from ..entities.channel import CacheKey, DataSourceKey
from ..entities.window import Domain, TimeWindow
from ..enums.sampling import ChannelKind

T = TypeVar("T")


class EventChannel(Generic[T]):
    """Typed publish/subscribe channel."""

    def __init__(self, name: str):
        self.name = name
        self._subscribers: List[Callable[[T], None]] = []

    def subscribe(self, callback: Callable[[T], None]) -> Callable[[], None]:
        """Register ``callback``; returns a function that unsubscribes it."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def publish(self, event: T) -> None:
        for callback in list(self._subscribers):
            callback(event)

    def __len__(self) -> int:
        return len(self._subscribers)


@dataclass(frozen=True)
class SelectionChanged:
    window: Optional[TimeWindow]
    cursor_ms: Optional[int]


@dataclass(frozen=True)
class CursorChanged:
    cursor_ms: Optional[int]


@dataclass(frozen=True)
class RangeCommitted:
    window: TimeWindow


@dataclass(frozen=True)
class LoadStarted:
    version: int
    key: DataSourceKey


@dataclass(frozen=True)
class ChunkApplied:
    version: int
    kind: ChannelKind
    channel_ids: Tuple[str, ...]
    replace: bool
    processed: int
    total: int


@dataclass(frozen=True)
class LoadCompleted:
    version: int
    key: CacheKey
    domain: Domain


@dataclass(frozen=True)
class LoadFailed:
    version: int
    key: DataSourceKey
    error: str


@dataclass
class TimelineEvents:
    """All event channels of one timeline session."""
    selection_changed: EventChannel[SelectionChanged] = field(default_factory=lambda: EventChannel("selection_changed"))
    cursor_changed: EventChannel[CursorChanged] = field(default_factory=lambda: EventChannel("cursor_changed"))
    range_committed: EventChannel[RangeCommitted] = field(default_factory=lambda: EventChannel("range_committed"))
    load_started: EventChannel[LoadStarted] = field(default_factory=lambda: EventChannel("load_started"))
    chunk_applied: EventChannel[ChunkApplied] = field(default_factory=lambda: EventChannel("chunk_applied"))
    load_completed: EventChannel[LoadCompleted] = field(default_factory=lambda: EventChannel("load_completed"))
    load_failed: EventChannel[LoadFailed] = field(default_factory=lambda: EventChannel("load_failed"))

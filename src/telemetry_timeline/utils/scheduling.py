import asyncio
import inspect
import logging
from typing import Any, Callable, Generic, List, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


class FrameThrottle(Generic[T, R]):
    """Apply at most one input per frame interval.

    The first input after a quiet interval is applied immediately. Inputs
    arriving inside the interval are coalesced: only the newest is applied
    when the interval ends, and every caller waiting on that frame receives
    its result.
    """

    def __init__(self, apply: Callable[[T], R], interval_ms: int = 16):
        self._apply = apply
        self._interval = interval_ms / 1000
        self._last_run: Optional[float] = None
        self._pending: Any = None
        self._handle: Optional[asyncio.TimerHandle] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._waiters: List[asyncio.Future] = []

    @property
    def pending(self) -> bool:
        return self._handle is not None

    async def submit(self, value: T) -> R:
        loop = asyncio.get_running_loop()
        now = loop.time()
        if self._handle is None and (self._last_run is None or now - self._last_run >= self._interval):
            self._last_run = now
            return self._apply(value)

        self._pending = value
        future = loop.create_future()
        self._waiters.append(future)
        if self._handle is None:
            self._loop = loop
            delay = max(0.0, self._interval - (now - self._last_run))
            self._handle = loop.call_later(delay, self._flush)
        return await future

    def _flush(self) -> None:
        self._handle = None
        waiters, self._waiters = self._waiters, []
        value, self._pending = self._pending, None
        self._last_run = self._loop.time()
        try:
            result = self._apply(value)
        except Exception as e:
            for waiter in waiters:
                if not waiter.done():
                    waiter.set_exception(e)
            return
        for waiter in waiters:
            if not waiter.done():
                waiter.set_result(result)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        waiters, self._waiters = self._waiters, []
        for waiter in waiters:
            if not waiter.done():
                waiter.cancel()


class Debouncer(Generic[T]):
    """Run ``callback`` once inputs have stopped for ``delay_ms``.

    Coroutine callbacks are scheduled as tasks; their failures are logged.
    """

    def __init__(self, callback: Callable[[T], Any], delay_ms: int = 500):
        self._callback = callback
        self._delay = delay_ms / 1000
        self._handle: Optional[asyncio.TimerHandle] = None
        self._value: Any = None
        self._task: Optional[asyncio.Task] = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def submit(self, value: T) -> None:
        loop = asyncio.get_running_loop()
        if self._handle is not None:
            self._handle.cancel()
        self._value = value
        self._handle = loop.call_later(self._delay, self._fire)

    def flush(self) -> None:
        """Fire a pending call now."""
        if self._handle is None:
            return
        self._handle.cancel()
        self._fire()

    def cancel(self) -> None:
        """Drop a pending call and stop a callback task still running."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._value = None
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    def _fire(self) -> None:
        self._handle = None
        value, self._value = self._value, None
        result = self._callback(value)
        if inspect.isawaitable(result):
            self._task = asyncio.ensure_future(result)
            self._task.add_done_callback(self._report)

    @staticmethod
    def _report(task: asyncio.Task) -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Debounced callback failed: {error}")

import asyncio

import pytest

from conftest import DAY_MS, HOUR_MS, MINUTE_MS, minute_payload
from telemetry_timeline.app_settings import AppSettings
from telemetry_timeline.entities.channel import DataSourceKey
from telemetry_timeline.entities.window import TimeWindow
from telemetry_timeline.enums.sampling import ChannelKind
from telemetry_timeline.exceptions.timeline_exceptions import DataNotLoadedError, MalformedPayloadError
from telemetry_timeline.services.timeline_session import TimelineSession
from telemetry_timeline.utils.scheduling import Debouncer, FrameThrottle

KEY = DataSourceKey(vehicle_id="v1", date="2024-01-15", shift="06:00:00to08:00:00")


def at(hour: int, minute: int = 0) -> int:
    return DAY_MS + hour * HOUR_MS + minute * MINUTE_MS


def _returning(payload):
    async def fetch():
        return payload
    return fetch


def test_load_publishes_chunks_and_initializes_selection() -> None:
    settings = AppSettings(chunk_size=10)
    payload = minute_payload(analog_ids=[str(i) for i in range(25)], digital_ids=["D1", "D2"])

    async def runner():
        session = TimelineSession("v1", settings)
        chunks, completed = [], []
        session.events.chunk_applied.subscribe(chunks.append)
        session.events.load_completed.subscribe(completed.append)
        result = await session.load(KEY, _returning(payload))
        session.close()
        return session, result, chunks, completed

    session, result, chunks, completed = asyncio.run(runner())

    digital = [c for c in chunks if c.kind == ChannelKind.DIGITAL]
    analog = [c for c in chunks if c.kind == ChannelKind.ANALOG]
    assert [(c.replace, c.processed, c.total) for c in digital] == [(True, 2, 2)]
    assert [(c.replace, c.processed) for c in analog] == [(True, 10), (False, 20), (False, 25)]
    assert {c.version for c in chunks} == {1}

    assert len(completed) == 1
    assert session.selection.window == TimeWindow(start_ms=at(6, 30), end_ms=at(7, 30))
    assert session.selection.cursor_ms == at(7)
    assert result.window == session.selection.window
    assert len(result.analog_metrics) == 25


def test_superseded_load_is_discarded() -> None:
    later_key = DataSourceKey(vehicle_id="v1", date="2024-01-16", shift="06:00:00to08:00:00")

    async def runner():
        session = TimelineSession("v1", AppSettings())
        completed = []
        session.events.load_completed.subscribe(completed.append)
        gate = asyncio.Event()

        async def slow_fetch():
            await gate.wait()
            return minute_payload()

        first = asyncio.create_task(session.load(KEY, slow_fetch))
        await asyncio.sleep(0)
        second = await session.load(later_key, _returning(minute_payload(count=30)))
        gate.set()
        stale = await first
        session.close()
        return session, stale, second, completed

    session, stale, second, completed = asyncio.run(runner())

    assert stale is None
    assert second is not None
    assert [event.version for event in completed] == [2]
    assert session.processor.current_key.date == "2024-01-16"
    assert session.load_version == 2


def test_failed_load_resets_selection() -> None:
    async def runner():
        session = TimelineSession("v1", AppSettings())
        failures = []
        session.events.load_failed.subscribe(failures.append)
        await session.load(KEY, _returning(minute_payload()))
        with pytest.raises(MalformedPayloadError):
            await session.load(KEY, _returning(["not", "an", "object"]))
        session.close()
        return session, failures

    session, failures = asyncio.run(runner())
    assert len(failures) == 1
    assert failures[0].version == 2
    assert session.selection.window is None
    with pytest.raises(DataNotLoadedError):
        session.get_window()


def test_cursor_updates_are_coalesced_per_frame() -> None:
    settings = AppSettings(frame_interval_ms=50)

    async def runner():
        session = TimelineSession("v1", settings)
        await session.load(KEY, _returning(minute_payload()))
        cursors = []
        session.events.cursor_changed.subscribe(lambda event: cursors.append(event.cursor_ms))
        states = await asyncio.gather(
            session.submit_cursor(at(6, 40)),
            session.submit_cursor(at(6, 50)),
            session.submit_cursor(at(7, 10)),
        )
        session.close()
        return states, cursors

    states, cursors = asyncio.run(runner())
    assert [state.cursor_ms for state in states] == [at(6, 40), at(7, 10), at(7, 10)]
    assert cursors == [at(6, 40), at(7, 10)]


def test_range_commit_is_debounced() -> None:
    settings = AppSettings(frame_interval_ms=5, range_commit_debounce_ms=30)

    async def runner():
        committed = []

        async def refetch(window):
            committed.append(window)

        session = TimelineSession("v1", settings, on_range_commit=refetch)
        await session.load(KEY, _returning(minute_payload()))
        events = []
        session.events.range_committed.subscribe(events.append)
        await session.submit_selection(at(6, 10), at(6, 20))
        last = await session.submit_selection(at(6, 40), at(7, 50))
        await asyncio.sleep(0.15)
        session.close()
        return last, committed, events

    last, committed, events = asyncio.run(runner())
    assert last.window == TimeWindow(start_ms=at(6, 40), end_ms=at(7, 50))
    assert committed == [last.window]
    assert [event.window for event in events] == [last.window]


def test_window_and_cursor_readout_follow_selection() -> None:
    async def runner():
        session = TimelineSession("v1", AppSettings())
        await session.load(KEY, _returning(minute_payload()))
        await session.submit_cursor(at(7, 5))
        data = session.get_window()
        readout = session.cursor_readout()
        explicit = session.get_window(at(6), at(6, 10))
        session.close()
        return data, readout, explicit

    data, readout, explicit = asyncio.run(runner())
    assert data.window == TimeWindow(start_ms=at(6, 30), end_ms=at(7, 30))
    assert readout.cursor_ms == at(7, 5)
    assert {value.channel_id for value in readout.analog} == {"101", "102"}
    assert explicit.timestamps[0] == at(6) and explicit.timestamps[-1] == at(6, 10)


def test_frame_throttle_propagates_errors() -> None:
    def apply(value):
        if value < 0:
            raise ValueError("negative")
        return value

    async def runner():
        throttle = FrameThrottle(apply, interval_ms=20)
        first = await throttle.submit(1)
        with pytest.raises(ValueError):
            await throttle.submit(-1)
        return first

    assert asyncio.run(runner()) == 1


def test_debouncer_flush_and_cancel() -> None:
    async def runner():
        calls = []
        debouncer = Debouncer(calls.append, delay_ms=1000)
        debouncer.submit(1)
        debouncer.submit(2)
        assert debouncer.pending
        debouncer.flush()
        debouncer.submit(3)
        debouncer.cancel()
        await asyncio.sleep(0)
        return calls, debouncer.pending

    calls, pending = asyncio.run(runner())
    assert calls == [2]
    assert not pending


def test_close_cancels_running_range_commit() -> None:
    settings = AppSettings(frame_interval_ms=5, range_commit_debounce_ms=10)

    async def runner():
        started = asyncio.Event()
        cancelled = []

        async def refetch(window):
            started.set()
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                cancelled.append(window)
                raise

        session = TimelineSession("v1", settings, on_range_commit=refetch)
        await session.load(KEY, _returning(minute_payload()))
        await session.submit_selection(at(6, 40), at(7, 50))
        await asyncio.wait_for(started.wait(), timeout=1)
        session.close()
        await asyncio.sleep(0.05)
        return list(cancelled)

    assert asyncio.run(runner()) == [TimeWindow(start_ms=at(6, 40), end_ms=at(7, 50))]

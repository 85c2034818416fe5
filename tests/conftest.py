import sys
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC_ROOT = ROOT / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from telemetry_timeline.app_settings import AppSettings  # noqa: E402

DAY_MS = 1_705_276_800_000  # 2024-01-15T00:00:00Z
MINUTE_MS = 60_000
HOUR_MS = 60 * MINUTE_MS


def hms(minute_of_day: int, second: int = 0) -> str:
    return f"{minute_of_day // 60:02d}:{minute_of_day % 60:02d}:{second:02d}"


def iso(minute_of_day: int, second: int = 0) -> str:
    return f"2024-01-15T{hms(minute_of_day, second)}Z"


def analog_channel(channel_id: Any, minutes: Iterable[int], base: float = 10.0, **extra: Any) -> Dict[str, Any]:
    points = [
        {"time": hms(m), "avg": base + i, "min": base + i - 1, "max": base + i + 1}
        for i, m in enumerate(minutes)
    ]
    return {"id": channel_id, "name": f"Channel {channel_id}", "unit": "bar", "points": points, **extra}


def digital_channel(channel_id: Any, minutes: Iterable[int], **extra: Any) -> Dict[str, Any]:
    points = [{"time": hms(m), "value": i % 2} for i, m in enumerate(minutes)]
    return {"id": channel_id, "name": f"Input {channel_id}", "points": points, **extra}


def minute_payload(
    start_minute: int = 6 * 60,
    count: int = 120,
    analog_ids: Optional[List[Any]] = None,
    digital_ids: Optional[List[Any]] = None,
) -> Dict[str, Any]:
    minutes = list(range(start_minute, start_minute + count))
    analog_ids = ["101", "102"] if analog_ids is None else analog_ids
    digital_ids = ["D1", "D12", "D3"] if digital_ids is None else digital_ids
    return {
        "timestamps": [{"time": hms(m), "timestamp": iso(m)} for m in minutes],
        "analogPerMinute": [analog_channel(cid, minutes, base=10.0 * (i + 1)) for i, cid in enumerate(analog_ids)],
        "digitalPerMinute": [digital_channel(cid, minutes) for cid in digital_ids],
    }


@pytest.fixture
def settings() -> AppSettings:
    return AppSettings()


@pytest.fixture
def payload() -> Dict[str, Any]:
    return minute_payload()

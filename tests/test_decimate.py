import numpy as np
import pandas as pd
import pytest

from telemetry_timeline.enums.sampling import DecimationMethod
from telemetry_timeline.utils.decimate import decimate, decimation_bucket_size
from telemetry_timeline.utils.lttb import lttb_indices


@pytest.fixture
def long_series() -> pd.DataFrame:
    n = 10_000
    avg = np.sin(np.linspace(0, 40, n))
    frame = pd.DataFrame({
        "timestamp_ms": np.arange(n, dtype="int64") * 1000,
        "avg": avg,
        "min": avg - 1,
        "max": avg + 1,
    })
    frame.loc[1234, ["avg", "max"]] = [50.0, 60.0]
    frame.loc[4321, "min"] = -80.0
    return frame


def test_bucket_size() -> None:
    assert decimation_bucket_size(10_000, 1500) == 7
    assert decimation_bucket_size(1500, 1500) == 1
    with pytest.raises(ValueError):
        decimation_bucket_size(10, 0)


def test_envelope_keeps_global_extremes(long_series) -> None:
    out = decimate(long_series, 1500)
    assert len(out) <= 1500
    assert out["max"].max() == 60.0
    assert out["min"].min() == -80.0
    assert out["timestamp_ms"].iloc[0] == 0
    assert out["timestamp_ms"].is_monotonic_increasing


def test_envelope_bucket_values() -> None:
    frame = pd.DataFrame({
        "timestamp_ms": np.array([0, 1, 2, 3, 4, 5], dtype="int64"),
        "avg": [1.0, 3.0, np.nan, np.nan, 5.0, 7.0],
        "min": [0.0, 2.0, np.nan, np.nan, 4.0, 6.0],
        "max": [2.0, 4.0, np.nan, np.nan, 6.0, 8.0],
    })
    out = decimate(frame, 3)
    assert out["timestamp_ms"].tolist() == [0, 2, 4]
    assert out.iloc[0][["avg", "min", "max"]].tolist() == [2.0, 0.0, 4.0]
    assert out.iloc[1][["avg", "min", "max"]].isna().all()
    assert out.iloc[2][["avg", "min", "max"]].tolist() == [6.0, 4.0, 8.0]


def test_short_series_unchanged(long_series) -> None:
    head = long_series.head(100)
    assert decimate(head, 1500) is head


def test_lttb_keeps_endpoints(long_series) -> None:
    out = decimate(long_series, 1500, DecimationMethod.LTTB)
    assert len(out) <= 1500
    assert out["timestamp_ms"].iloc[0] == 0
    assert out["timestamp_ms"].iloc[-1] == 9_999_000
    assert 50.0 in out["avg"].tolist()


def test_lttb_indices_small_targets() -> None:
    x = np.arange(10, dtype="float64")
    y = np.zeros(10)
    assert lttb_indices(x, y, 20).tolist() == list(range(10))
    assert lttb_indices(x, y, 2).tolist() == [0, 9]

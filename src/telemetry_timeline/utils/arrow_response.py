import io
from typing import Optional

import pandas as pd
import pyarrow as pa
import pyarrow.ipc as pa_ipc
from starlette.requests import Request
from starlette.responses import StreamingResponse

ARROW_MIME = "application/vnd.apache.arrow.stream"


def client_wants_arrow(request: Request) -> bool:
    """True when the client asked for ``Accept: application/vnd.apache.arrow.stream``."""
    accept = request.headers.get("accept", "")
    return ARROW_MIME in accept.lower()


def points_to_arrow_table(points: pd.DataFrame) -> pa.Table:
    """Point frame → Arrow table with a UTC millisecond time column.

    Missing samples become Arrow nulls rather than NaN.
    """
    columns = {"timestamp": pa.array(points["timestamp_ms"].to_numpy(dtype="int64"), type=pa.int64())
               .cast(pa.timestamp("ms", tz="UTC"))}
    for name in points.columns:
        if name == "timestamp_ms":
            continue
        values = points[name].to_numpy(dtype="float64")
        columns[name] = pa.array(values, type=pa.float64(), from_pandas=True)
    return pa.table(columns)


def points_to_arrow_streaming_response(
    points: pd.DataFrame,
    filename: Optional[str] = "window.arrow",
) -> StreamingResponse:
    """Serialize a point frame as an Arrow IPC stream."""
    table = points_to_arrow_table(points)
    sink = pa.BufferOutputStream()
    with pa_ipc.new_stream(sink, table.schema) as writer:
        writer.write_table(table)
    buf = sink.getvalue()

    return StreamingResponse(
        io.BytesIO(buf.to_pybytes()),
        media_type=ARROW_MIME,
        headers={"Content-Disposition": f'inline; filename="{filename}"'},
    )

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from ..app_settings import app_settings
from ..dependencies.sessions import get_session_repository
from ..entities.window import TimeWindow
from ..enums.sampling import DecimationMethod
from ..exceptions.timeline_exceptions import (
    ChannelNotFoundError,
    DataNotLoadedError,
    SessionNotFoundError,
)
from ..repos.session_repo import SessionRepository
from ..utils.arrow_response import client_wants_arrow, points_to_arrow_streaming_response
from ..utils.frames import frame_records

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/vehicles/{vehicle_id}/window")
async def get_window(
    vehicle_id: str,
    start_ms: Optional[int] = Query(None, description="Window start (epoch ms); defaults to the selection"),
    end_ms: Optional[int] = Query(None, description="Window end (epoch ms); defaults to the selection"),
    second_view: Optional[bool] = Query(None, description="Force second (true) or minute (false) buckets"),
    points: Optional[int] = Query(None, ge=app_settings.points_min, le=app_settings.points_max),
    method: DecimationMethod = Query(DecimationMethod.ENVELOPE, description="envelope|lttb"),
    sessions: SessionRepository = Depends(get_session_repository),
) -> Dict[str, Any]:
    """Windowed metrics of every channel from the cached series."""
    try:
        session = sessions.get(vehicle_id)
        result = session.get_window(start_ms, end_ms, second_view, points, method)
    except SessionNotFoundError as e:
        raise HTTPException(404, str(e))
    except DataNotLoadedError as e:
        raise HTTPException(409, str(e))
    except Exception as e:
        logger.error(f"Error in window endpoint: {e}")
        raise HTTPException(500, f"Processing error: {str(e)}")

    return result.model_dump()


@router.get("/vehicles/{vehicle_id}/channels/{channel_id}/window")
async def get_channel_window(
    request: Request,
    vehicle_id: str,
    channel_id: str,
    start_ms: Optional[int] = Query(None, description="Window start (epoch ms)"),
    end_ms: Optional[int] = Query(None, description="Window end (epoch ms)"),
    points: int = Query(
        app_settings.default_points,
        ge=app_settings.points_min,
        le=app_settings.points_max,
    ),
    method: DecimationMethod = Query(DecimationMethod.ENVELOPE, description="envelope|lttb"),
    sessions: SessionRepository = Depends(get_session_repository),
):
    """Single channel window as JSON, or Arrow IPC when the client asks for it."""
    try:
        session = sessions.get(vehicle_id)
        dataset = session.processor.cached_dataset()
        if start_ms is not None and end_ms is not None:
            window = TimeWindow(start_ms=min(start_ms, end_ms), end_ms=max(start_ms, end_ms))
        else:
            window = session.selection.window
        df, original_points = session.processor.channel_window(dataset, channel_id, window, points, method)
    except (SessionNotFoundError, ChannelNotFoundError) as e:
        raise HTTPException(404, str(e))
    except DataNotLoadedError as e:
        raise HTTPException(409, str(e))
    except Exception as e:
        logger.error(f"Error in channel window endpoint: {e}")
        raise HTTPException(500, f"Processing error: {str(e)}")

    if client_wants_arrow(request):
        return points_to_arrow_streaming_response(df, filename=f"{vehicle_id}-{channel_id}.arrow")

    return {
        "vehicle_id": vehicle_id,
        "channel_id": channel_id,
        "bucket_ms": dataset.bucket_ms,
        "method": method.value,
        "window": window.model_dump() if window is not None else None,
        "original_points": original_points,
        "returned_points": len(df),
        "data": frame_records(df),
    }

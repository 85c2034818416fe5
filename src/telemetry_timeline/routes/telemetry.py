import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query

from ..app_settings import app_settings
from ..dependencies.sessions import get_session_repository
from ..entities.channel import DataSourceKey
from ..enums.sampling import DecimationMethod
from ..exceptions.timeline_exceptions import MalformedPayloadError, SessionNotFoundError
from ..repos.session_repo import SessionRepository
from ..utils.shift import format_shift_for_api

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/vehicles/{vehicle_id}/telemetry")
async def load_telemetry(
    vehicle_id: str,
    payload: Any = Body(..., description="Telemetry payload as returned by the vehicle API"),
    date: Optional[str] = Query(None, description="Selected date (YYYY-MM-DD, DD-MM-YYYY or DD/MM/YYYY)"),
    shift: Optional[str] = Query(None, description="Shift, e.g. 06:00:00to18:00:00 or '6 AM to 6 PM'"),
    points: Optional[int] = Query(None, ge=app_settings.points_min, le=app_settings.points_max),
    method: DecimationMethod = Query(DecimationMethod.ENVELOPE, description="envelope|lttb"),
    sessions: SessionRepository = Depends(get_session_repository),
) -> Dict[str, Any]:
    """Load a telemetry payload into the vehicle's timeline session."""
    session = sessions.get_or_create(vehicle_id)
    key = DataSourceKey(
        vehicle_id=vehicle_id,
        date=date,
        shift=format_shift_for_api(shift or app_settings.default_shift),
    )

    async def fetch() -> Any:
        return payload

    try:
        result = await session.load(key, fetch, selected_date=date, max_points=points, method=method)
    except MalformedPayloadError as e:
        raise HTTPException(422, str(e))
    except Exception as e:
        logger.error(f"Error loading telemetry for {vehicle_id}: {e}")
        raise HTTPException(500, f"Processing error: {str(e)}")

    if result is None:
        raise HTTPException(409, "Load superseded by a newer request")

    return {
        "vehicle_id": vehicle_id,
        "load_version": session.load_version,
        "data": result.model_dump(),
        "selection": session.selection.state().model_dump(),
    }


@router.delete("/vehicles/{vehicle_id}/cache")
async def clear_cache(
    vehicle_id: str,
    sessions: SessionRepository = Depends(get_session_repository),
) -> Dict[str, Any]:
    """Drop the cached series of a vehicle."""
    try:
        session = sessions.get(vehicle_id)
    except SessionNotFoundError as e:
        raise HTTPException(404, str(e))

    cleared = session.processor.clear_cache()
    logger.info(f"Cleared {cleared} cached datasets for {vehicle_id}")
    return {"vehicle_id": vehicle_id, "cleared": cleared}

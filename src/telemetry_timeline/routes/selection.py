import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from ..dependencies.sessions import get_session_repository
from ..exceptions.timeline_exceptions import DataNotLoadedError, SessionNotFoundError
from ..repos.session_repo import SessionRepository
from ..utils.geometry import Margins

logger = logging.getLogger(__name__)

router = APIRouter()


class SelectionRequest(BaseModel):
    start_ms: int
    end_ms: int


class CursorRequest(BaseModel):
    timestamp_ms: int


@router.get("/vehicles/{vehicle_id}/selection")
async def get_selection(
    vehicle_id: str,
    plot_width_px: Optional[float] = Query(None, gt=0, description="Plot width used to place the cursor"),
    margin_left: float = Query(0.0, ge=0),
    margin_right: float = Query(0.0, ge=0),
    sessions: SessionRepository = Depends(get_session_repository),
) -> Dict[str, Any]:
    """Current window, cursor and domain; ``pixel_x`` when a plot width is given."""
    try:
        session = sessions.get(vehicle_id)
    except SessionNotFoundError as e:
        raise HTTPException(404, str(e))
    return session.selection.state(plot_width_px, Margins(margin_left, margin_right)).model_dump()


@router.post("/vehicles/{vehicle_id}/selection")
async def change_selection(
    vehicle_id: str,
    request: SelectionRequest,
    sessions: SessionRepository = Depends(get_session_repository),
) -> Dict[str, Any]:
    """Move or resize the selection window."""
    try:
        session = sessions.get(vehicle_id)
        state = await session.submit_selection(request.start_ms, request.end_ms)
    except SessionNotFoundError as e:
        raise HTTPException(404, str(e))
    except DataNotLoadedError as e:
        raise HTTPException(409, str(e))
    except Exception as e:
        logger.error(f"Error changing selection for {vehicle_id}: {e}")
        raise HTTPException(500, f"Selection error: {str(e)}")
    return state.model_dump()


@router.post("/vehicles/{vehicle_id}/cursor")
async def move_cursor(
    vehicle_id: str,
    request: CursorRequest,
    sessions: SessionRepository = Depends(get_session_repository),
) -> Dict[str, Any]:
    """Move the shared cursor."""
    try:
        session = sessions.get(vehicle_id)
        state = await session.submit_cursor(request.timestamp_ms)
    except SessionNotFoundError as e:
        raise HTTPException(404, str(e))
    except DataNotLoadedError as e:
        raise HTTPException(409, str(e))
    except Exception as e:
        logger.error(f"Error moving cursor for {vehicle_id}: {e}")
        raise HTTPException(500, f"Cursor error: {str(e)}")
    return state.model_dump()


@router.get("/vehicles/{vehicle_id}/cursor/values")
async def get_cursor_values(
    vehicle_id: str,
    sessions: SessionRepository = Depends(get_session_repository),
) -> Dict[str, Any]:
    """Per-channel values under the cursor."""
    try:
        session = sessions.get(vehicle_id)
        readout = session.cursor_readout()
    except SessionNotFoundError as e:
        raise HTTPException(404, str(e))
    except DataNotLoadedError as e:
        raise HTTPException(409, str(e))
    except Exception as e:
        logger.error(f"Error reading cursor values for {vehicle_id}: {e}")
        raise HTTPException(500, f"Cursor error: {str(e)}")
    return readout.model_dump()

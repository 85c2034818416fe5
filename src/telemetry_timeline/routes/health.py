import logging
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends

from ..app_settings import app_settings
from ..dependencies.sessions import get_session_repository
from ..repos.session_repo import SessionRepository

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
async def health_check(
    sessions: SessionRepository = Depends(get_session_repository),
) -> Dict[str, Any]:
    """Health check endpoint."""
    return {
        "status": "healthy",
        "sessions": len(sessions),
        "vehicles": sessions.list_vehicle_ids(),
        "cached_datasets": sessions.cached_dataset_count(),
        "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
    }


@router.get("/constraints")
async def get_api_constraints() -> Dict[str, Any]:
    """Get API constraints for frontend."""
    return app_settings.get_api_constraints()

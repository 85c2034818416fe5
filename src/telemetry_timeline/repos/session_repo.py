import logging
from typing import Dict, List

from ..app_settings import AppSettings, app_settings
from ..exceptions.timeline_exceptions import SessionNotFoundError
from ..services.timeline_session import TimelineSession

logger = logging.getLogger(__name__)


class SessionRepository:
    """Repository of per-vehicle timeline sessions."""

    def __init__(self, settings: AppSettings = app_settings):
        self.settings = settings
        self._sessions: Dict[str, TimelineSession] = {}

    def get_or_create(self, vehicle_id: str) -> TimelineSession:
        session = self._sessions.get(vehicle_id)
        if session is None:
            session = TimelineSession(vehicle_id, self.settings)
            self._sessions[vehicle_id] = session
            logger.info(f"Created timeline session for vehicle {vehicle_id}")
        return session

    def get(self, vehicle_id: str) -> TimelineSession:
        session = self._sessions.get(vehicle_id)
        if session is None:
            raise SessionNotFoundError(f"No timeline session for vehicle {vehicle_id}")
        return session

    def list_vehicle_ids(self) -> List[str]:
        return list(self._sessions)

    def cached_dataset_count(self) -> int:
        return sum(len(session.processor.cache) for session in self._sessions.values())

    def close_all(self) -> None:
        for session in self._sessions.values():
            session.close()
        self._sessions.clear()

    def __len__(self) -> int:
        return len(self._sessions)

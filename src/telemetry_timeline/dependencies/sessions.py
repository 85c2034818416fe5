from functools import lru_cache

from ..repos.session_repo import SessionRepository


@lru_cache()
def get_session_repository() -> SessionRepository:
    """Get session repository instance (singleton)."""
    return SessionRepository()

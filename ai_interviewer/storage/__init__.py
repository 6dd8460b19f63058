import structlog

from ..core.config import Settings
from ..core.exceptions import StorageError
from ..core.interfaces import SessionStore
from .memory import MemorySessionStore
from .sql import SQLSessionStore

logger = structlog.get_logger(__name__)

__all__ = ["MemorySessionStore", "SQLSessionStore", "build_session_store"]


async def build_session_store(settings: Settings) -> SessionStore:
    """
    Pick the session store once at startup: the database when DATABASE_URL is
    set and reachable, otherwise process memory.
    """
    if not settings.DATABASE_URL:
        logger.warning("database_url_missing", detail="Session data will be ephemeral")
        return MemorySessionStore()

    store = SQLSessionStore(settings.DATABASE_URL)
    try:
        await store.connect()
    except StorageError as e:
        logger.warning("database_unavailable", error=e.message, detail="Session data will be ephemeral")
        return MemorySessionStore()
    return store

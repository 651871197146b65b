import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

from adventure.schemas.game import GameSettings
from adventure.services.game_session import GameSession

class SessionStore:
    """
    In-memory registry of live game sessions. Nothing outlives the process.
    """
    def __init__(self, **session_kwargs):
        self.sessions: Dict[str, GameSession] = {}
        # Passed to every session the store creates, e.g. generation clients.
        self.session_kwargs = session_kwargs

    def __len__(self):
        return len(self.sessions)

session_store = SessionStore()

def get_store() -> SessionStore:
    """
    Dependency to get the process-wide session store.
    """
    return session_store

def create_session(store: SessionStore, settings: Optional[GameSettings] = None, **kwargs) -> GameSession:
    """
    Creates and registers a new game session.
    """
    session = GameSession(settings=settings, **{**store.session_kwargs, **kwargs})
    store.sessions[session.session_id] = session
    return session

def get_session(store: SessionStore, session_id: str) -> Optional[GameSession]:
    """
    Retrieves a session by its ID.
    """
    return store.sessions.get(session_id)

def delete_session(store: SessionStore, session_id: str) -> bool:
    """
    Drops a session, cancelling its in-flight turn if any.
    """
    session = store.sessions.pop(session_id, None)
    if session is None:
        return False
    session.close()
    return True

def remove_inactive_sessions(store: SessionStore, inactive_hours: int) -> int:
    """
    Deletes sessions that have not been touched for a specified number of hours.

    :param store: The session store.
    :param inactive_hours: The threshold in hours for a session to be considered inactive.
    :return: The number of sessions deleted.
    """
    threshold = datetime.now(timezone.utc) - timedelta(hours=inactive_hours)
    inactive_ids = [
        session_id for session_id, session in store.sessions.items()
        if session.updated_at < threshold and not session.turn_loading
    ]
    for session_id in inactive_ids:
        delete_session(store, session_id)
    if inactive_ids:
        logging.info(f"Removed {len(inactive_ids)} inactive sessions.")
    return len(inactive_ids)

"""
Durable holder of the single active session.

At most one session snapshot exists at a time; saving overwrites it.
A snapshot that cannot be parsed is treated as absent rather than fatal.
"""

import logging

from ..core.config import ACTIVE_SESSION_KEY
from ..core.models import Session
from .local_store import LocalStore
from .serializers import ValidationError, session_from_json, session_to_json

logger = logging.getLogger(__name__)


class SessionStateStore:
    """load/save/clear for the active session snapshot."""

    def __init__(self, store: LocalStore, key: str = ACTIVE_SESSION_KEY):
        self.store = store
        self.key = key

    def load_session(self) -> Session | None:
        """
        Load the persisted session.

        Returns:
            Session, or None if nothing is stored or the snapshot is corrupt
        """
        text = self.store.get(self.key)
        if not text:
            return None
        try:
            return session_from_json(text)
        except ValidationError as e:
            logger.warning("Ignoring unreadable session snapshot: %s", e)
            return None

    def save_session(self, session: Session) -> None:
        """Persist session as the sole active session."""
        self.store.set(self.key, session_to_json(session))

    def clear_session(self) -> None:
        """Remove the active session."""
        self.store.remove(self.key)

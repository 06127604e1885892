"""
Single-writer holder for the active document session.
"""

import asyncio
from typing import Optional

from ..models import Session
from ..utils import log_processing_info
import logging

logger = logging.getLogger(__name__)


class SessionStore:
    """
    Holds at most one Session.

    Commits are serialized by a lock and each one fully replaces the previous
    session, so the last upload to finish is the one that stays. Readers take
    a snapshot reference; Sessions are immutable, so a snapshot never changes
    underneath a request.
    """

    def __init__(self):
        self._session: Optional[Session] = None
        self._lock = asyncio.Lock()
        self._generation = 0

    @property
    def generation(self) -> int:
        """Number of commits applied so far."""
        return self._generation

    async def commit(self, session: Session) -> int:
        """Replace the active session. Returns the new generation number."""
        async with self._lock:
            previous = self._session
            self._session = session
            self._generation += 1
            log_processing_info("Session committed", {
                "session_id": session.session_id,
                "source": session.source_label,
                "passages": len(session.passages),
                "generation": self._generation,
                "replaced_session_id": previous.session_id if previous else None
            })
            return self._generation

    def snapshot(self) -> Optional[Session]:
        """Current session, or None before the first successful upload."""
        return self._session

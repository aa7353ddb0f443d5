"""
Negotiation session registry.

WHAT: Map of connection id -> NegotiationSession
WHY: Each WebSocket owns exactly one session; the app needs to count and
     tear them down on shutdown
HOW: Plain dict owned by an instance on app.state, explicit removal on disconnect
"""

from typing import Callable, Dict, Optional
from uuid import uuid4

from ..negotiation.arbiter import Arbiter
from ..negotiation.session import EmitCallback, NegotiationSession
from ..utils.logger import get_logger

logger = get_logger(__name__)


class SessionManager:
    """Owns live negotiation sessions for one application instance."""

    def __init__(self, arbiter_factory: Optional[Callable[[], Optional[Arbiter]]] = None, **session_options):
        """
        Args:
            arbiter_factory: Builds the external arbiter for a new session
                (None or returning None = fallback only)
            **session_options: Passed through to NegotiationSession
        """
        self.arbiter_factory = arbiter_factory
        self.session_options = session_options
        self.sessions: Dict[str, NegotiationSession] = {}

    def create(self, emit: EmitCallback, session_id: Optional[str] = None) -> NegotiationSession:
        session_id = session_id or str(uuid4())
        if session_id in self.sessions:
            raise ValueError(f"Session already registered: {session_id}")

        arbiter = self.arbiter_factory() if self.arbiter_factory else None
        session = NegotiationSession(session_id, emit, arbiter=arbiter, **self.session_options)
        self.sessions[session_id] = session
        logger.debug(f"Registered session {session_id} ({len(self.sessions)} active)")
        return session

    def get(self, session_id: str) -> Optional[NegotiationSession]:
        return self.sessions.get(session_id)

    async def remove(self, session_id: str) -> None:
        """Disconnect and forget a session; unknown ids are ignored."""
        session = self.sessions.pop(session_id, None)
        if session is not None:
            await session.disconnect()

    async def close_all(self) -> None:
        for session_id in list(self.sessions):
            await self.remove(session_id)

    @property
    def active_count(self) -> int:
        return len(self.sessions)

from typing import Dict, List
import asyncio
import structlog

from counselor.domain.models.agent_state import Role, Turn
from counselor.infrastructure.observability.logging import agent_logger

logger = structlog.get_logger(__name__)

DEFAULT_MAX_TURNS = 50


class SessionStore:
    """Short-term conversation memory, one bounded transcript per session.

    Lives only as long as the process. Each session also owns an
    ``asyncio.Lock`` so a caller can serialize whole turns per session.
    """

    def __init__(self, max_turns: int = DEFAULT_MAX_TURNS):
        self.max_turns = max_turns
        self.sessions: Dict[str, List[Turn]] = {}
        self._session_locks: Dict[str, asyncio.Lock] = {}

    def init(self):
        """Start with no sessions"""

        self.sessions.clear()
        self._session_locks.clear()
        logger.info("Session store ready", max_turns=self.max_turns)

    def close(self):
        """Drop every transcript"""

        count = len(self.sessions)
        self.sessions.clear()
        self._session_locks.clear()
        logger.info("Session store closed", dropped_sessions=count)

    async def get(self, session_id: str) -> List[Turn]:
        """Get the transcript for a session, creating it on first use"""

        return list(self.sessions.setdefault(session_id, []))

    async def append(self, session_id: str, role: Role, content: str) -> Turn:
        """Append one turn and drop the oldest beyond the cap"""

        turn = Turn(role=role, content=content)
        turns = self.sessions.setdefault(session_id, [])
        turns.append(turn)

        if len(turns) > self.max_turns:
            del turns[:len(turns) - self.max_turns]

        agent_logger.log_context_update(
            session_id,
            context_type="session",
            action=f"append_{role.value}",
            details={"turns": len(turns)}
        )
        return turn

    def session_lock(self, session_id: str) -> asyncio.Lock:
        """Lock guarding turn processing for one session"""

        lock = self._session_locks.get(session_id)
        if lock is None:
            lock = self._session_locks[session_id] = asyncio.Lock()
        return lock

    def session_count(self) -> int:
        return len(self.sessions)

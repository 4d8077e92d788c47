"""Session history management."""

import asyncio
import secrets
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from knowledge_agent.config import ConversationSettings, get_settings
from knowledge_agent.conversation.models import Session, SessionSummary
from knowledge_agent.llm.models import ChatMessage, Role
from knowledge_agent.logging_config import get_logger
from knowledge_agent.store import Store

logger = get_logger(__name__)


class SessionManager:
    """Bounded, per-session chat histories held in a store.

    All changes to one session are serialized by a per-session lock, so
    concurrent appends are never lost and history follows arrival order.
    """

    def __init__(
        self,
        store: Store[list[ChatMessage]],
        settings: ConversationSettings | None = None,
    ) -> None:
        """Initialize the session manager.

        Args:
            store: Backing store mapping session ids to histories.
            settings: History limits.
        """
        self._store = store
        self._settings = settings or get_settings().conversation
        # Locks live only while a caller holds or waits on them
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}

    @property
    def max_messages(self) -> int:
        """Messages kept per session."""
        return self._settings.session_max_messages

    @staticmethod
    def new_session_id() -> str:
        """Create a session id from the current time and a random suffix.

        The millisecond timestamp keeps ids ordered by creation; the suffix
        separates sessions created in the same millisecond.
        """
        return f"session_{int(time.time() * 1000)}_{secrets.token_hex(4)}"

    @asynccontextmanager
    async def _session_lock(self, session_id: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(session_id, asyncio.Lock())
        self._lock_users[session_id] = self._lock_users.get(session_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[session_id] -= 1
            if not self._lock_users[session_id]:
                del self._lock_users[session_id]
                del self._locks[session_id]

    @asynccontextmanager
    async def session(self, session_id: str) -> AsyncIterator[Session]:
        """Hold the session lock and yield a working copy of the session.

        The copy is written back only if the block exits cleanly; a failed
        turn leaves the stored history untouched.
        """
        async with self._session_lock(session_id):
            history = await self._store.get(session_id) or []
            session = Session(session_id=session_id, history=list(history))
            yield session
            await self._store.put(session_id, session.history)

    async def append(self, session_id: str, role: Role, content: str) -> ChatMessage:
        """Append one message to a session, creating it if needed."""
        async with self.session(session_id) as session:
            return session.append(role, content, self.max_messages)

    async def get(self, session_id: str) -> list[ChatMessage]:
        """Return a session's history; unknown sessions have none."""
        return list(await self._store.get(session_id) or [])

    async def clear(self, session_id: str) -> bool:
        """Delete a session. Returns whether it existed."""
        async with self._session_lock(session_id):
            existed = await self._store.delete(session_id)
        if existed:
            logger.info("Session cleared", extra={"session_id": session_id})
        return existed

    async def list_sessions(self) -> list[SessionSummary]:
        """Summarize every stored session."""
        return [
            SessionSummary(
                session_id=session_id,
                message_count=len(history),
                last_activity=history[-1].timestamp if history else None,
            )
            for session_id, history in await self._store.items()
        ]

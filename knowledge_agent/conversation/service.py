"""Chat turns over session history."""

from collections.abc import AsyncIterator

from knowledge_agent.conversation.manager import SessionManager
from knowledge_agent.conversation.models import ChatReply
from knowledge_agent.llm.client import LLMClient
from knowledge_agent.llm.models import CompletionOptions, Role
from knowledge_agent.logging_config import get_logger

logger = get_logger(__name__)


class ChatService:
    """Sends a session's full history to the completion client.

    The session lock is held for the whole turn: the user message, the
    completion call and the assistant reply land together or not at all.
    """

    def __init__(self, llm_client: LLMClient, sessions: SessionManager) -> None:
        """Initialize the chat service.

        Args:
            llm_client: Completion client.
            sessions: Session history manager.
        """
        self._llm = llm_client
        self._sessions = sessions

    @property
    def sessions(self) -> SessionManager:
        """The underlying session manager."""
        return self._sessions

    async def send(
        self,
        message: str,
        session_id: str | None = None,
        model: str | None = None,
        temperature: float | None = None,
    ) -> ChatReply:
        """Run one chat turn.

        Args:
            message: User message.
            session_id: Existing session; a new one is created when omitted.
            model: Primary model override.
            temperature: Sampling temperature override.

        Returns:
            The assistant reply and the session id.

        Raises:
            LLMError: If the completion fails. History is left unchanged.
        """
        session_id = session_id or self._sessions.new_session_id()
        options = CompletionOptions(model=model, temperature=temperature)
        max_messages = self._sessions.max_messages

        async with self._sessions.session(session_id) as session:
            session.append(Role.USER, message, max_messages)
            result = await self._llm.generate(session.messages(), options)
            session.append(Role.ASSISTANT, result.content, max_messages)

        logger.info(
            "Chat turn completed",
            extra={"session_id": session_id, "model": result.model},
        )
        return ChatReply(
            session_id=session_id,
            message=result.content,
            model=result.model,
            usage=result.usage,
        )

    async def stream(self, message: str, session_id: str) -> AsyncIterator[str]:
        """Run one chat turn, yielding reply fragments as they arrive.

        The assistant reply is stored once the stream ends. A stream that
        fails or is abandoned leaves history unchanged.
        """
        max_messages = self._sessions.max_messages

        async with self._sessions.session(session_id) as session:
            session.append(Role.USER, message, max_messages)
            fragments: list[str] = []
            async for fragment in self._llm.stream(session.messages()):
                fragments.append(fragment)
                yield fragment
            session.append(Role.ASSISTANT, "".join(fragments), max_messages)

        logger.info("Chat stream completed", extra={"session_id": session_id})

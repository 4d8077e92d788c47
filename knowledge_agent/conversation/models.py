"""Conversation session models."""

from pydantic import BaseModel, Field

from knowledge_agent.llm.models import ChatMessage, Message, Role, TokenUsage


class Session(BaseModel):
    """A chat session and its bounded history.

    Attributes:
        session_id: Opaque session identifier.
        history: Messages in arrival order, oldest first.
    """

    session_id: str = Field(description="Session identifier")
    history: list[ChatMessage] = Field(default_factory=list, description="Messages")

    def append(self, role: Role, content: str, max_messages: int) -> ChatMessage:
        """Append a message, then drop the oldest beyond ``max_messages``."""
        message = ChatMessage(role=role, content=content)
        self.history.append(message)
        if len(self.history) > max_messages:
            del self.history[: len(self.history) - max_messages]
        return message

    def messages(self) -> list[Message]:
        """History as completion request messages."""
        return [message.to_message() for message in self.history]


class SessionSummary(BaseModel):
    """Listing entry for one session."""

    session_id: str = Field(description="Session identifier")
    message_count: int = Field(description="Messages in history")
    last_activity: str | None = Field(
        default=None,
        description="Timestamp of the latest message",
    )


class ChatReply(BaseModel):
    """Assistant reply to one chat turn."""

    session_id: str = Field(description="Session the turn belongs to")
    message: str = Field(description="Assistant reply")
    model: str = Field(description="Model that produced the reply")
    usage: TokenUsage = Field(default_factory=TokenUsage, description="Token usage")

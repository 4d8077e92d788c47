"""Conversation session module."""

from knowledge_agent.conversation.manager import SessionManager
from knowledge_agent.conversation.models import ChatReply, Session, SessionSummary
from knowledge_agent.conversation.service import ChatService

__all__ = [
    "ChatReply",
    "ChatService",
    "Session",
    "SessionManager",
    "SessionSummary",
]

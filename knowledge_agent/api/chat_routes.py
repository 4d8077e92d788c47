"""Chat session endpoints."""

import json
from collections.abc import AsyncIterator
from typing import Any

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field

from knowledge_agent.api.dependencies import get_chat_service
from knowledge_agent.conversation.models import SessionSummary
from knowledge_agent.conversation.service import ChatService
from knowledge_agent.exceptions import KnowledgeAgentError
from knowledge_agent.llm.models import ChatMessage, TokenUsage
from knowledge_agent.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/chat", tags=["Chat"])


class ChatRequest(BaseModel):
    """Request body for a chat turn."""

    message: str = Field(min_length=1, description="User message")
    session_id: str | None = Field(default=None, description="Existing session id")
    model: str | None = Field(default=None, description="Model override")
    temperature: float | None = Field(
        default=None,
        ge=0.0,
        le=2.0,
        description="Sampling temperature override",
    )


class ChatResponse(BaseModel):
    """Assistant reply to a chat turn."""

    session_id: str = Field(description="Session id")
    message: str = Field(description="Assistant reply")
    usage: TokenUsage = Field(description="Token usage")
    model: str = Field(description="Model used")


class StreamRequest(BaseModel):
    """Request body for a streamed chat turn."""

    message: str = Field(min_length=1, description="User message")
    session_id: str | None = Field(default=None, description="Existing session id")


class HistoryResponse(BaseModel):
    """A session's history."""

    session_id: str = Field(description="Session id")
    history: list[ChatMessage] = Field(description="Messages, oldest first")


class DeleteHistoryResponse(BaseModel):
    """Outcome of deleting a session."""

    session_id: str = Field(description="Session id")
    deleted: bool = Field(description="Whether the session existed")


class SessionListResponse(BaseModel):
    """All known sessions."""

    sessions: list[SessionSummary] = Field(description="Session summaries")
    count: int = Field(description="Number of sessions")


def _sse(payload: dict[str, Any]) -> str:
    return f"data: {json.dumps(payload)}\n\n"


@router.post("/message", response_model=ChatResponse)
async def send_message(
    request: ChatRequest,
    chat: ChatService = Depends(get_chat_service),
) -> ChatResponse:
    """Send a message and wait for the full reply."""
    reply = await chat.send(
        request.message,
        session_id=request.session_id,
        model=request.model,
        temperature=request.temperature,
    )
    return ChatResponse(
        session_id=reply.session_id,
        message=reply.message,
        usage=reply.usage,
        model=reply.model,
    )


@router.post("/stream")
async def stream_message(
    request: StreamRequest,
    chat: ChatService = Depends(get_chat_service),
) -> StreamingResponse:
    """Send a message and stream the reply as server-sent events.

    Each fragment is sent as ``{"chunk": ...}``, followed by
    ``{"done": true, "session_id": ...}``. A failure ends the stream with
    ``{"error": ..., "details": ...}``.
    """
    session_id = request.session_id or chat.sessions.new_session_id()

    async def events() -> AsyncIterator[str]:
        try:
            async for fragment in chat.stream(request.message, session_id):
                yield _sse({"chunk": fragment})
            yield _sse({"done": True, "session_id": session_id})
        except KnowledgeAgentError as e:
            logger.error(
                f"Chat stream failed: {e.message}",
                extra={"session_id": session_id, "error_code": e.code.value},
            )
            yield _sse({"error": "streaming failed", "details": e.message})

    return StreamingResponse(
        events(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )


@router.get("/history/{session_id}", response_model=HistoryResponse)
async def get_history(
    session_id: str,
    chat: ChatService = Depends(get_chat_service),
) -> HistoryResponse:
    """Return a session's history (empty for unknown sessions)."""
    return HistoryResponse(
        session_id=session_id,
        history=await chat.sessions.get(session_id),
    )


@router.delete("/history/{session_id}", response_model=DeleteHistoryResponse)
async def delete_history(
    session_id: str,
    chat: ChatService = Depends(get_chat_service),
) -> DeleteHistoryResponse:
    """Delete a session."""
    deleted = await chat.sessions.clear(session_id)
    return DeleteHistoryResponse(session_id=session_id, deleted=deleted)


@router.get("/sessions", response_model=SessionListResponse)
async def list_sessions(
    chat: ChatService = Depends(get_chat_service),
) -> SessionListResponse:
    """List all sessions."""
    sessions = await chat.sessions.list_sessions()
    return SessionListResponse(sessions=sessions, count=len(sessions))

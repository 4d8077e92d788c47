"""LLM data models."""

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Role(str, Enum):
    """Message role in a conversation."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class Message(BaseModel):
    """A message sent to the completion endpoint.

    Attributes:
        role: The role of the message sender.
        content: The message content.
    """

    role: Role = Field(description="Message role")
    content: str = Field(description="Message content")


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


class ChatMessage(Message):
    """A message recorded in a session or agent history.

    Frozen once created; histories only ever append.
    """

    model_config = ConfigDict(frozen=True)

    timestamp: str = Field(
        default_factory=_now_iso,
        description="ISO-8601 creation time",
    )

    def to_message(self) -> Message:
        """Strip history bookkeeping for the completion request."""
        return Message(role=self.role, content=self.content)


class CompletionOptions(BaseModel):
    """Per-call overrides for a completion request.

    ``None`` means "use the configured default"; zero is a real override.
    """

    model: str | None = Field(default=None, description="Model override")
    temperature: float | None = Field(default=None, description="Sampling temperature")
    max_tokens: int | None = Field(default=None, description="Maximum tokens")
    top_p: float | None = Field(default=None, description="Nucleus sampling mass")
    frequency_penalty: float | None = Field(default=None, description="Frequency penalty")
    presence_penalty: float | None = Field(default=None, description="Presence penalty")
    allow_fallback: bool = Field(
        default=True,
        description="Retry once on the fallback model when the primary fails",
    )


class TokenUsage(BaseModel):
    """Token accounting reported by the completion endpoint."""

    prompt_tokens: int = Field(default=0, description="Prompt token count")
    completion_tokens: int = Field(default=0, description="Completion token count")
    total_tokens: int = Field(default=0, description="Total token count")


class GenerationResult(BaseModel):
    """Result from LLM generation.

    Attributes:
        content: The generated text.
        model: Model that served the request (the fallback model after a fallback).
        prompt_tokens: Number of tokens in the prompt.
        completion_tokens: Number of tokens in the completion.
        total_tokens: Total tokens used.
    """

    content: str = Field(description="Generated text")
    model: str = Field(description="Model used")
    prompt_tokens: int = Field(default=0, description="Prompt token count")
    completion_tokens: int = Field(default=0, description="Completion token count")
    total_tokens: int = Field(default=0, description="Total token count")

    @property
    def usage(self) -> TokenUsage:
        """Token counts as a standalone model."""
        return TokenUsage(
            prompt_tokens=self.prompt_tokens,
            completion_tokens=self.completion_tokens,
            total_tokens=self.total_tokens,
        )

"""LLM client module."""

from knowledge_agent.llm.client import LLMClient, OpenAICompatibleClient, estimate_tokens
from knowledge_agent.llm.models import (
    ChatMessage,
    CompletionOptions,
    GenerationResult,
    Message,
    Role,
    TokenUsage,
)
from knowledge_agent.llm.prompts import (
    INTENT_SYSTEM_PROMPT,
    GroundedQueryTemplate,
    IntentPromptTemplate,
    PromptTemplate,
    ReasoningStepTemplate,
    ReasoningSummaryTemplate,
)

__all__ = [
    "INTENT_SYSTEM_PROMPT",
    "ChatMessage",
    "CompletionOptions",
    "GenerationResult",
    "GroundedQueryTemplate",
    "IntentPromptTemplate",
    "LLMClient",
    "Message",
    "OpenAICompatibleClient",
    "PromptTemplate",
    "ReasoningStepTemplate",
    "ReasoningSummaryTemplate",
    "Role",
    "TokenUsage",
    "estimate_tokens",
]

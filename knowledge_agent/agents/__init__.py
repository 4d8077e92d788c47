"""Agent module."""

from knowledge_agent.agents.agent import Agent
from knowledge_agent.agents.intent import IntentAnalyzer, parse_intent
from knowledge_agent.agents.models import (
    AgentAnswer,
    AgentSummary,
    IntentAnalysis,
    ReasoningResult,
    ReasoningStep,
    StepResult,
)
from knowledge_agent.agents.profiles import SYSTEM_PROMPTS, AgentType
from knowledge_agent.agents.registry import AgentRegistry

__all__ = [
    "SYSTEM_PROMPTS",
    "Agent",
    "AgentAnswer",
    "AgentRegistry",
    "AgentSummary",
    "AgentType",
    "IntentAnalysis",
    "IntentAnalyzer",
    "ReasoningResult",
    "ReasoningStep",
    "StepResult",
    "parse_intent",
]

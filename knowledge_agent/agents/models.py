"""Agent data models."""

from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from knowledge_agent.agents.profiles import AgentType
from knowledge_agent.knowledge.models import KnowledgeSearchResult
from knowledge_agent.llm.models import TokenUsage


class AgentAnswer(BaseModel):
    """Answer to a knowledge query.

    Attributes:
        answer: Assistant reply.
        knowledge_used: Whether retrieved passages were added to the prompt.
        sources: Raw search results used for grounding, or None.
        usage: Token usage of the completion.
        model: Model that produced the answer.
    """

    answer: str = Field(description="Assistant reply")
    knowledge_used: bool = Field(description="Whether the answer was grounded")
    sources: list[KnowledgeSearchResult] | None = Field(
        default=None,
        description="Passages used for grounding",
    )
    usage: TokenUsage = Field(default_factory=TokenUsage, description="Token usage")
    model: str = Field(default="", description="Model used")


class ReasoningStep(BaseModel):
    """One step of a reasoning chain, as requested."""

    description: str = Field(min_length=1, description="What this step should do")


class StepResult(BaseModel):
    """Outcome of one reasoning step."""

    step: int = Field(ge=1, description="1-based step number")
    description: str = Field(description="Step description")
    result: str = Field(description="Completion for this step")


class ReasoningResult(BaseModel):
    """Outcome of a full reasoning chain."""

    final_answer: str = Field(description="Summary over all step results")
    steps: list[StepResult] = Field(default_factory=list, description="Step results")


class AgentSummary(BaseModel):
    """Listing entry for one agent."""

    agent_id: str = Field(description="Agent identifier")
    agent_type: AgentType = Field(description="Agent profile")
    history_length: int = Field(description="Messages in history")


class IntentAnalysis(BaseModel):
    """Classification of a user query.

    Accepts ``requiresKnowledge`` and ``requiredKnowledge`` spellings from
    model output; always serializes as ``requires_knowledge``.
    """

    model_config = ConfigDict(populate_by_name=True)

    intent: Literal["question", "command", "request", "conversation"]
    domain: Literal["technical", "general", "creative", "analytical"]
    complexity: Literal["simple", "medium", "complex"]
    requires_knowledge: bool = Field(
        validation_alias=AliasChoices(
            "requires_knowledge",
            "requiresKnowledge",
            "requiredKnowledge",
        ),
    )

    @classmethod
    def default(cls) -> "IntentAnalysis":
        """Classification used when the model reply cannot be decoded."""
        return cls(
            intent="question",
            domain="general",
            complexity="medium",
            requires_knowledge=True,
        )

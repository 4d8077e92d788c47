"""Agent types and their system prompts.

The agent type only selects the system prompt; all types behave the same
otherwise.
"""

from enum import Enum

from knowledge_agent.exceptions import ValidationError


class AgentType(str, Enum):
    """Closed set of agent profiles."""

    DEFAULT = "default"
    TECHNICAL = "technical"
    CREATIVE = "creative"
    ANALYTICAL = "analytical"

    @classmethod
    def parse(cls, value: "AgentType | str") -> "AgentType":
        """Convert a raw value, rejecting anything outside the enum.

        Raises:
            ValidationError: If ``value`` is not a known agent type.
        """
        try:
            return cls(value)
        except ValueError as e:
            raise ValidationError(
                f"Unknown agent type: {value}",
                details={"agent_type": str(value), "allowed": [t.value for t in cls]},
            ) from e


SYSTEM_PROMPTS: dict[AgentType, str] = {
    AgentType.DEFAULT: """You are an intelligent AI assistant with the following capabilities:
1. Answer questions based on the provided knowledge base
2. Perform logical reasoning and analysis
3. Give professional, accurate advice
4. Keep a friendly, professional conversational style

Answering rules:
- Prefer information from the knowledge base
- If the knowledge base has nothing relevant, answer from common knowledge
- Acknowledge uncertainty and never make things up
- Keep answers concise, clear and well organized""",
    AgentType.TECHNICAL: """You are a technical expert AI assistant, skilled in:
- Programming and software development
- System architecture design
- Diagnosing and solving technical problems
- Code review and optimization advice

Provide professional, detailed technical guidance.""",
    AgentType.CREATIVE: """You are a creative AI assistant, skilled in:
- Creative writing and content creation
- Brainstorming and creative thinking
- Copywriting and marketing advice
- Story ideas and character design

Provide imaginative and inspiring suggestions.""",
    AgentType.ANALYTICAL: """You are a data analysis expert AI assistant, skilled in:
- Data analysis and interpretation
- Statistical reasoning
- Business insight
- Decision support

Provide in-depth, data-driven analysis and recommendations.""",
}


def system_prompt_for(agent_type: AgentType) -> str:
    """System prompt for an agent type."""
    return SYSTEM_PROMPTS[agent_type]

"""Agent endpoints."""

from typing import Literal

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from knowledge_agent.agents.intent import IntentAnalyzer
from knowledge_agent.agents.models import (
    AgentSummary,
    IntentAnalysis,
    ReasoningStep,
    StepResult,
)
from knowledge_agent.agents.profiles import AgentType
from knowledge_agent.agents.registry import AgentRegistry
from knowledge_agent.api.dependencies import get_agent_registry, get_intent_analyzer
from knowledge_agent.knowledge.models import KnowledgeSearchResult
from knowledge_agent.llm.models import ChatMessage, TokenUsage

router = APIRouter(prefix="/api/agent", tags=["Agent"])


class CreateAgentRequest(BaseModel):
    """Request body for creating an agent."""

    agent_type: AgentType = Field(default=AgentType.DEFAULT, description="Agent profile")


class CreateAgentResponse(BaseModel):
    """A newly created agent."""

    agent_id: str = Field(description="Agent id")
    agent_type: AgentType = Field(description="Agent profile")


class AgentQueryRequest(BaseModel):
    """Request body for an agent query."""

    query: str = Field(min_length=1, description="User query")
    agent_id: str | None = Field(default=None, description="Existing agent id")
    agent_type: AgentType = Field(
        default=AgentType.DEFAULT,
        description="Profile used if the agent is created",
    )
    use_knowledge_base: bool = Field(default=True, description="Ground in the knowledge base")


class AgentQueryResponse(BaseModel):
    """Agent answer."""

    agent_id: str = Field(description="Agent id")
    answer: str = Field(description="Assistant reply")
    knowledge_used: bool = Field(description="Whether the answer was grounded")
    sources: list[KnowledgeSearchResult] | None = Field(description="Grounding passages")
    usage: TokenUsage = Field(description="Token usage")


class IntentRequest(BaseModel):
    """Query to classify."""

    query: str = Field(min_length=1, description="User query")


class IntentResponse(BaseModel):
    """Intent classification."""

    query: str = Field(description="User query")
    analysis: IntentAnalysis = Field(description="Classification")


class MultiStepRequest(BaseModel):
    """Reasoning chain request."""

    task: str = Field(min_length=1, description="Overall task")
    steps: list[ReasoningStep] = Field(min_length=1, description="Ordered steps")
    agent_type: AgentType = Field(default=AgentType.ANALYTICAL, description="Agent profile")


class MultiStepResponse(BaseModel):
    """Reasoning chain outcome."""

    task: str = Field(description="Overall task")
    steps: list[StepResult] = Field(description="Step results")
    final_answer: str = Field(description="Summary answer")


class AgentHistoryResponse(BaseModel):
    """An agent's conversation history."""

    agent_id: str = Field(description="Agent id")
    history: list[ChatMessage] = Field(description="Messages, oldest first")


class AgentActionResponse(BaseModel):
    """Outcome of a reset or delete."""

    agent_id: str = Field(description="Agent id")
    action: Literal["reset", "delete"] = Field(description="Action performed")


class AgentListResponse(BaseModel):
    """All registered agents."""

    agents: list[AgentSummary] = Field(description="Agent summaries")
    count: int = Field(description="Number of agents")


@router.post("/create", response_model=CreateAgentResponse)
async def create_agent(
    request: CreateAgentRequest,
    registry: AgentRegistry = Depends(get_agent_registry),
) -> CreateAgentResponse:
    """Create and register an agent."""
    agent = await registry.create(request.agent_type)
    return CreateAgentResponse(agent_id=agent.agent_id, agent_type=agent.agent_type)


@router.post("/query", response_model=AgentQueryResponse)
async def query_agent(
    request: AgentQueryRequest,
    registry: AgentRegistry = Depends(get_agent_registry),
) -> AgentQueryResponse:
    """Ask an agent, creating it on first use."""
    agent = await registry.get_or_create(request.agent_id, request.agent_type)
    answer = await agent.query_with_knowledge(request.query, request.use_knowledge_base)
    return AgentQueryResponse(
        agent_id=agent.agent_id,
        answer=answer.answer,
        knowledge_used=answer.knowledge_used,
        sources=answer.sources,
        usage=answer.usage,
    )


@router.post("/analyze-intent", response_model=IntentResponse)
async def analyze_intent(
    request: IntentRequest,
    analyzer: IntentAnalyzer = Depends(get_intent_analyzer),
) -> IntentResponse:
    """Classify a query's intent."""
    return IntentResponse(query=request.query, analysis=await analyzer.analyze(request.query))


@router.post("/multi-step", response_model=MultiStepResponse)
async def multi_step(
    request: MultiStepRequest,
    registry: AgentRegistry = Depends(get_agent_registry),
) -> MultiStepResponse:
    """Run a reasoning chain on a fresh, unregistered agent."""
    agent = registry.build(request.agent_type)
    result = await agent.multi_step_reasoning(request.task, request.steps)
    return MultiStepResponse(
        task=request.task,
        steps=result.steps,
        final_answer=result.final_answer,
    )


@router.get("/history/{agent_id}", response_model=AgentHistoryResponse)
async def agent_history(
    agent_id: str,
    registry: AgentRegistry = Depends(get_agent_registry),
) -> AgentHistoryResponse:
    """Return an agent's conversation history."""
    agent = await registry.get(agent_id)
    return AgentHistoryResponse(agent_id=agent_id, history=agent.get_history())


@router.get("/list", response_model=AgentListResponse)
async def list_agents(
    registry: AgentRegistry = Depends(get_agent_registry),
) -> AgentListResponse:
    """List registered agents."""
    agents = await registry.list_agents()
    return AgentListResponse(agents=agents, count=len(agents))


@router.delete("/{agent_id}", response_model=AgentActionResponse)
async def reset_or_delete_agent(
    agent_id: str,
    action: Literal["reset", "delete"] = Query(default="reset"),
    registry: AgentRegistry = Depends(get_agent_registry),
) -> AgentActionResponse:
    """Reset an agent's history or remove the agent."""
    if action == "reset":
        await registry.reset(agent_id)
    else:
        await registry.delete(agent_id)
    return AgentActionResponse(agent_id=agent_id, action=action)

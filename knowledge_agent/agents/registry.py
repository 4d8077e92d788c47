"""Registry of live agents."""

import asyncio
import secrets
import time

from knowledge_agent.agents.agent import Agent
from knowledge_agent.agents.models import AgentSummary
from knowledge_agent.agents.profiles import AgentType
from knowledge_agent.config import ConversationSettings, get_settings
from knowledge_agent.exceptions import AgentError, ErrorCode
from knowledge_agent.knowledge.service import KnowledgeBase
from knowledge_agent.llm.client import LLMClient
from knowledge_agent.logging_config import get_logger
from knowledge_agent.store import Store

logger = get_logger(__name__)


class AgentRegistry:
    """Creates agents and keeps them in a store, one agent per id."""

    def __init__(
        self,
        store: Store[Agent],
        llm_client: LLMClient,
        knowledge_base: KnowledgeBase | None = None,
        settings: ConversationSettings | None = None,
    ) -> None:
        """Initialize the registry.

        Args:
            store: Backing store mapping agent ids to agents.
            llm_client: Completion client shared by all agents.
            knowledge_base: Knowledge base shared by all agents.
            settings: Conversation limits passed to each agent.
        """
        self._store = store
        self._llm = llm_client
        self._knowledge = knowledge_base
        self._settings = settings or get_settings().conversation
        self._lock = asyncio.Lock()

    @staticmethod
    def new_agent_id() -> str:
        """Create an agent id from the current time and a random suffix."""
        return f"agent_{int(time.time() * 1000)}_{secrets.token_hex(4)}"

    def build(self, agent_type: AgentType | str, agent_id: str | None = None) -> Agent:
        """Construct an agent without registering it."""
        return Agent(
            agent_id=agent_id or self.new_agent_id(),
            agent_type=agent_type,
            llm_client=self._llm,
            knowledge_base=self._knowledge,
            settings=self._settings,
        )

    async def create(self, agent_type: AgentType | str = AgentType.DEFAULT) -> Agent:
        """Create and register a new agent.

        Raises:
            ValidationError: If ``agent_type`` is unknown.
        """
        agent = self.build(agent_type)
        await self._store.put(agent.agent_id, agent)
        logger.info(
            "Agent created",
            extra={"agent_id": agent.agent_id, "agent_type": agent.agent_type.value},
        )
        return agent

    async def get(self, agent_id: str) -> Agent:
        """Look up an agent.

        Raises:
            AgentError: If no agent has this id.
        """
        agent = await self._store.get(agent_id)
        if agent is None:
            raise AgentError(
                f"Agent not found: {agent_id}",
                code=ErrorCode.AGENT_NOT_FOUND,
                details={"agent_id": agent_id},
            )
        return agent

    async def get_or_create(
        self,
        agent_id: str | None = None,
        agent_type: AgentType | str = AgentType.DEFAULT,
    ) -> Agent:
        """Return the agent with ``agent_id``, creating it if unknown.

        A missing id gets a fresh synthesized one. ``agent_type`` only
        applies when an agent is created.
        """
        async with self._lock:
            if agent_id is not None:
                existing = await self._store.get(agent_id)
                if existing is not None:
                    return existing

            agent = self.build(agent_type, agent_id)
            await self._store.put(agent.agent_id, agent)

        logger.info(
            "Agent created on first query",
            extra={"agent_id": agent.agent_id, "agent_type": agent.agent_type.value},
        )
        return agent

    async def reset(self, agent_id: str) -> Agent:
        """Clear an agent's history."""
        agent = await self.get(agent_id)
        agent.reset_history()
        return agent

    async def delete(self, agent_id: str) -> None:
        """Remove an agent from the registry.

        Raises:
            AgentError: If no agent has this id.
        """
        if not await self._store.delete(agent_id):
            raise AgentError(
                f"Agent not found: {agent_id}",
                code=ErrorCode.AGENT_NOT_FOUND,
                details={"agent_id": agent_id},
            )
        logger.info("Agent deleted", extra={"agent_id": agent_id})

    async def list_agents(self) -> list[AgentSummary]:
        """Summarize every registered agent."""
        return [agent.summary() for _, agent in await self._store.items()]

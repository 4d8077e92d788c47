"""Tests for agents and the agent registry."""

import asyncio
import re

import pytest
from fakes import FakeLLMClient, FakeVectorStore

from knowledge_agent.agents.agent import Agent
from knowledge_agent.agents.models import ReasoningStep
from knowledge_agent.agents.profiles import SYSTEM_PROMPTS, AgentType, system_prompt_for
from knowledge_agent.agents.registry import AgentRegistry
from knowledge_agent.config import ConversationSettings
from knowledge_agent.documents.models import Document
from knowledge_agent.exceptions import (
    AgentError,
    ErrorCode,
    LLMError,
    ValidationError,
)
from knowledge_agent.knowledge.service import KnowledgeBase
from knowledge_agent.llm.models import Role
from knowledge_agent.store import InMemoryStore


@pytest.fixture
def agent(fake_llm: FakeLLMClient, knowledge_base: KnowledgeBase) -> Agent:
    """Default agent over the fake knowledge base."""
    return Agent("agent_1", AgentType.DEFAULT, fake_llm, knowledge_base, ConversationSettings())


@pytest.fixture
def registry(fake_llm: FakeLLMClient, knowledge_base: KnowledgeBase) -> AgentRegistry:
    """Registry with an in-memory store."""
    return AgentRegistry(InMemoryStore[Agent](), fake_llm, knowledge_base, ConversationSettings())


class TestAgentType:
    """Tests for agent profiles."""

    def test_parse_known(self) -> None:
        assert AgentType.parse("technical") is AgentType.TECHNICAL
        assert AgentType.parse(AgentType.CREATIVE) is AgentType.CREATIVE

    def test_parse_unknown(self) -> None:
        """Unknown types are rejected, not silently defaulted."""
        with pytest.raises(ValidationError) as exc_info:
            AgentType.parse("pirate")
        assert exc_info.value.code == ErrorCode.VALIDATION_ERROR
        assert "technical" in exc_info.value.details["allowed"]

    def test_every_type_has_a_prompt(self) -> None:
        assert set(SYSTEM_PROMPTS) == set(AgentType)
        assert "technical expert" in system_prompt_for(AgentType.TECHNICAL)


class TestQueryWithKnowledge:
    """Tests for grounded agent queries."""

    @pytest.mark.asyncio
    async def test_grounded_answer(
        self, agent: Agent, fake_llm: FakeLLMClient, knowledge_base: KnowledgeBase
    ) -> None:
        """Retrieved passages are labelled and the rewritten query is sent."""
        await knowledge_base.upsert(
            [Document(id="pw", text="Passwords are reset from the settings page.")]
        )
        fake_llm.replies = ["Go to settings."]

        answer = await agent.query_with_knowledge("How do I reset my password?")

        assert answer.answer == "Go to settings."
        assert answer.knowledge_used is True
        assert answer.sources is not None
        assert answer.sources[0].id == "pw"

        sent = fake_llm.calls[0]
        assert sent[0].role == Role.SYSTEM
        assert sent[0].content == system_prompt_for(AgentType.DEFAULT)
        assert "[document 1] Passwords are reset from the settings page." in sent[-1].content
        assert "How do I reset my password?" in sent[-1].content

    @pytest.mark.asyncio
    async def test_rewritten_query_becomes_user_turn(
        self, agent: Agent, knowledge_base: KnowledgeBase
    ) -> None:
        await knowledge_base.upsert([Document(id="a", text="Alpha facts.")])

        await agent.query_with_knowledge("Tell me about alpha")

        history = agent.get_history()
        assert history[0].role == Role.USER
        assert history[0].content.startswith("Answer the question using the following knowledge")

    @pytest.mark.asyncio
    async def test_empty_knowledge_base(self, agent: Agent, fake_llm: FakeLLMClient) -> None:
        """No passages means an ungrounded answer with the raw query."""
        answer = await agent.query_with_knowledge("Hello?")

        assert answer.knowledge_used is False
        assert answer.sources is None
        assert fake_llm.calls[0][-1].content == "Hello?"

    @pytest.mark.asyncio
    async def test_retrieval_failure_degrades_gracefully(
        self,
        agent: Agent,
        fake_llm: FakeLLMClient,
        fake_vector_store: FakeVectorStore,
    ) -> None:
        """A broken knowledge base still yields an answer."""
        fake_vector_store.fail_search = True
        fake_llm.replies = ["Best effort answer"]

        answer = await agent.query_with_knowledge("What is our refund policy?")

        assert answer.answer == "Best effort answer"
        assert answer.knowledge_used is False
        assert answer.sources is None
        assert fake_llm.calls[0][-1].content == "What is our refund policy?"

    @pytest.mark.asyncio
    async def test_knowledge_disabled(
        self, agent: Agent, fake_llm: FakeLLMClient, knowledge_base: KnowledgeBase
    ) -> None:
        await knowledge_base.upsert([Document(id="a", text="Alpha facts.")])

        answer = await agent.query_with_knowledge("Alpha facts.", use_knowledge_base=False)

        assert answer.knowledge_used is False
        assert fake_llm.calls[0][-1].content == "Alpha facts."

    @pytest.mark.asyncio
    async def test_agent_without_knowledge_base(self, fake_llm: FakeLLMClient) -> None:
        agent = Agent("solo", "creative", fake_llm, settings=ConversationSettings())

        answer = await agent.query_with_knowledge("Write a haiku")

        assert answer.knowledge_used is False
        assert agent.agent_type is AgentType.CREATIVE

    @pytest.mark.asyncio
    async def test_history_sent_with_each_query(
        self, agent: Agent, fake_llm: FakeLLMClient
    ) -> None:
        fake_llm.replies = ["first answer", "second answer"]

        await agent.query_with_knowledge("first", use_knowledge_base=False)
        await agent.query_with_knowledge("second", use_knowledge_base=False)

        assert [m.content for m in fake_llm.calls[1][1:]] == [
            "first",
            "first answer",
            "second",
        ]

    @pytest.mark.asyncio
    async def test_history_capped_at_ten_turns(self, agent: Agent) -> None:
        """Oldest user/assistant pairs are evicted together."""
        for i in range(12):
            await agent.query_with_knowledge(f"q{i}", use_knowledge_base=False)

        history = agent.get_history()
        assert len(history) == 20
        assert history[0].role == Role.USER
        assert history[0].content == "q2"
        assert history[-2].content == "q11"

    @pytest.mark.asyncio
    async def test_failed_completion_leaves_history_unchanged(
        self, agent: Agent, fake_llm: FakeLLMClient
    ) -> None:
        await agent.query_with_knowledge("kept", use_knowledge_base=False)
        fake_llm.error = LLMError("down", code=ErrorCode.LLM_FALLBACK_EXHAUSTED)

        with pytest.raises(LLMError):
            await agent.query_with_knowledge("lost", use_knowledge_base=False)

        assert [m.content for m in agent.get_history()][0] == "kept"
        assert len(agent.get_history()) == 2

    @pytest.mark.asyncio
    async def test_reset_history(self, agent: Agent) -> None:
        await agent.query_with_knowledge("hi", use_knowledge_base=False)

        agent.reset_history()

        assert agent.get_history() == []
        assert agent.agent_id == "agent_1"
        assert agent.summary().history_length == 0

    def test_unknown_type_rejected(self, fake_llm: FakeLLMClient) -> None:
        with pytest.raises(ValidationError):
            Agent("x", "pirate", fake_llm)


class TestMultiStepReasoning:
    """Tests for sequential reasoning chains."""

    @pytest.mark.asyncio
    async def test_results_feed_the_next_step(
        self, agent: Agent, fake_llm: FakeLLMClient
    ) -> None:
        """Step 2's prompt carries step 1's result verbatim."""
        fake_llm.replies = ["Revenue grew 12%.", "Growth came from EMEA.", "Summary."]

        result = await agent.multi_step_reasoning(
            "Explain Q3 results",
            [ReasoningStep(description="Find growth"), "Find the driver"],
        )

        assert [s.result for s in result.steps] == ["Revenue grew 12%.", "Growth came from EMEA."]
        assert [s.step for s in result.steps] == [1, 2]
        assert result.final_answer == "Summary."

        first_prompt = fake_llm.calls[0][-1].content
        second_prompt = fake_llm.calls[1][-1].content
        assert first_prompt.startswith("Task: Explain Q3 results")
        assert "Current step (1/2): Find growth" in first_prompt
        assert second_prompt.startswith("Task: Revenue grew 12%.")
        assert "Current step (2/2): Find the driver" in second_prompt

    @pytest.mark.asyncio
    async def test_summary_call_lists_all_steps(
        self, agent: Agent, fake_llm: FakeLLMClient
    ) -> None:
        fake_llm.replies = ["r1", "r2", "final"]

        await agent.multi_step_reasoning("task", ["s1", "s2"])

        assert len(fake_llm.calls) == 3
        summary_prompt = fake_llm.calls[2][-1].content
        assert "Step 1: s1\nResult: r1" in summary_prompt
        assert "Step 2: s2\nResult: r2" in summary_prompt

    @pytest.mark.asyncio
    async def test_steps_are_stateless(self, agent: Agent, fake_llm: FakeLLMClient) -> None:
        """Each call sends only the system prompt and the step prompt."""
        await agent.query_with_knowledge("earlier", use_knowledge_base=False)

        await agent.multi_step_reasoning("task", ["only step"])

        assert all(len(call) == 2 for call in fake_llm.calls[1:])
        assert len(agent.get_history()) == 2

    @pytest.mark.asyncio
    async def test_empty_steps_rejected(self, agent: Agent, fake_llm: FakeLLMClient) -> None:
        with pytest.raises(ValidationError):
            await agent.multi_step_reasoning("task", [])
        assert fake_llm.calls == []

    @pytest.mark.asyncio
    async def test_step_failure_propagates(self, agent: Agent, fake_llm: FakeLLMClient) -> None:
        fake_llm.error = LLMError("down")

        with pytest.raises(LLMError):
            await agent.multi_step_reasoning("task", ["s1", "s2"])

        assert len(fake_llm.calls) == 1


class TestAgentRegistry:
    """Tests for AgentRegistry."""

    def test_new_agent_id_format(self) -> None:
        assert re.fullmatch(r"agent_\d{13}_[0-9a-f]{8}", AgentRegistry.new_agent_id())

    @pytest.mark.asyncio
    async def test_create_and_get(self, registry: AgentRegistry) -> None:
        agent = await registry.create("technical")

        assert await registry.get(agent.agent_id) is agent
        assert agent.agent_type is AgentType.TECHNICAL

    @pytest.mark.asyncio
    async def test_create_unknown_type(self, registry: AgentRegistry) -> None:
        with pytest.raises(ValidationError):
            await registry.create("pirate")
        assert await registry.list_agents() == []

    @pytest.mark.asyncio
    async def test_get_unknown(self, registry: AgentRegistry) -> None:
        with pytest.raises(AgentError) as exc_info:
            await registry.get("agent_missing")
        assert exc_info.value.code == ErrorCode.AGENT_NOT_FOUND

    @pytest.mark.asyncio
    async def test_get_or_create_keeps_given_id(self, registry: AgentRegistry) -> None:
        """An unknown id is used for the new agent."""
        agent = await registry.get_or_create("my-agent", "analytical")

        assert agent.agent_id == "my-agent"
        assert agent.agent_type is AgentType.ANALYTICAL
        assert await registry.get_or_create("my-agent", "creative") is agent

    @pytest.mark.asyncio
    async def test_get_or_create_without_id(self, registry: AgentRegistry) -> None:
        agent = await registry.get_or_create(None)
        assert agent.agent_id.startswith("agent_")
        assert agent.agent_type is AgentType.DEFAULT

    @pytest.mark.asyncio
    async def test_concurrent_get_or_create(self, registry: AgentRegistry) -> None:
        """Concurrent first queries for one id share a single agent."""
        agents = await asyncio.gather(*(registry.get_or_create("shared") for _ in range(5)))

        assert all(a is agents[0] for a in agents)
        assert len(await registry.list_agents()) == 1

    @pytest.mark.asyncio
    async def test_build_does_not_register(self, registry: AgentRegistry) -> None:
        agent = registry.build("analytical")

        with pytest.raises(AgentError):
            await registry.get(agent.agent_id)

    @pytest.mark.asyncio
    async def test_reset(self, registry: AgentRegistry) -> None:
        agent = await registry.create()
        await agent.query_with_knowledge("hi", use_knowledge_base=False)

        await registry.reset(agent.agent_id)

        assert (await registry.get(agent.agent_id)).get_history() == []

    @pytest.mark.asyncio
    async def test_delete(self, registry: AgentRegistry) -> None:
        agent = await registry.create()

        await registry.delete(agent.agent_id)

        with pytest.raises(AgentError):
            await registry.get(agent.agent_id)
        with pytest.raises(AgentError):
            await registry.delete(agent.agent_id)

    @pytest.mark.asyncio
    async def test_list_agents(self, registry: AgentRegistry) -> None:
        first = await registry.create("technical")
        await registry.create("creative")
        await first.query_with_knowledge("hi", use_knowledge_base=False)

        summaries = {s.agent_id: s for s in await registry.list_agents()}

        assert len(summaries) == 2
        assert summaries[first.agent_id].history_length == 2
        assert summaries[first.agent_id].agent_type is AgentType.TECHNICAL

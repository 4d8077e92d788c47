"""Conversational agent with optional knowledge grounding."""

import asyncio
from collections.abc import Sequence

from knowledge_agent.agents.models import (
    AgentAnswer,
    AgentSummary,
    ReasoningResult,
    ReasoningStep,
    StepResult,
)
from knowledge_agent.agents.profiles import AgentType, system_prompt_for
from knowledge_agent.config import ConversationSettings, get_settings
from knowledge_agent.exceptions import RetrievalError, ValidationError
from knowledge_agent.knowledge.models import KnowledgeSearchResult
from knowledge_agent.knowledge.service import KnowledgeBase
from knowledge_agent.llm.client import LLMClient
from knowledge_agent.llm.models import ChatMessage, Message, Role
from knowledge_agent.llm.prompts import (
    GroundedQueryTemplate,
    ReasoningStepTemplate,
    ReasoningSummaryTemplate,
)
from knowledge_agent.logging_config import get_logger
from knowledge_agent.observability.metrics import track_agent_query

logger = get_logger(__name__)


class Agent:
    """A stateful assistant bound to one agent type.

    Knowledge queries share the agent's history and are serialized by a
    per-agent lock. Reasoning chains are stateless.
    """

    def __init__(
        self,
        agent_id: str,
        agent_type: AgentType | str,
        llm_client: LLMClient,
        knowledge_base: KnowledgeBase | None = None,
        settings: ConversationSettings | None = None,
    ) -> None:
        """Initialize the agent.

        Args:
            agent_id: Agent identifier.
            agent_type: Agent profile; unknown values are rejected.
            llm_client: Completion client.
            knowledge_base: Source of grounding passages. Without one, every
                answer is ungrounded.
            settings: History cap and retrieval depth.

        Raises:
            ValidationError: If ``agent_type`` is unknown.
        """
        self.agent_id = agent_id
        self.agent_type = AgentType.parse(agent_type)
        self.system_prompt = system_prompt_for(self.agent_type)
        self._llm = llm_client
        self._knowledge = knowledge_base
        self._settings = settings or get_settings().conversation
        self._history: list[ChatMessage] = []
        self._lock = asyncio.Lock()
        self._grounded_template = GroundedQueryTemplate()
        self._step_template = ReasoningStepTemplate()
        self._summary_template = ReasoningSummaryTemplate()

    @property
    def max_history(self) -> int:
        """Messages kept in history (two per turn)."""
        return self._settings.agent_max_turns * 2

    def get_history(self) -> list[ChatMessage]:
        """Return a copy of the conversation history."""
        return list(self._history)

    def reset_history(self) -> None:
        """Forget the conversation; identity and type are kept."""
        self._history.clear()

    def summary(self) -> AgentSummary:
        """Describe this agent for listings."""
        return AgentSummary(
            agent_id=self.agent_id,
            agent_type=self.agent_type,
            history_length=len(self._history),
        )

    def _record_turn(self, user_content: str, assistant_content: str) -> None:
        """Append a user/assistant pair, evicting the oldest pairs beyond the cap."""
        self._history.append(ChatMessage(role=Role.USER, content=user_content))
        self._history.append(ChatMessage(role=Role.ASSISTANT, content=assistant_content))
        while len(self._history) > self.max_history:
            del self._history[:2]

    def _messages(self, user_content: str) -> list[Message]:
        return [
            Message(role=Role.SYSTEM, content=self.system_prompt),
            *(message.to_message() for message in self._history),
            Message(role=Role.USER, content=user_content),
        ]

    async def _retrieve(self, query: str) -> tuple[list[KnowledgeSearchResult], bool]:
        """Search the knowledge base. Returns the results and whether it failed."""
        if self._knowledge is None:
            return [], False
        try:
            results = await self._knowledge.search(
                query, top_k=self._settings.knowledge_top_k
            )
        except RetrievalError as e:
            logger.warning(
                f"Retrieval failed, answering without knowledge: {e.message}",
                extra={"agent_id": self.agent_id},
            )
            return [], True
        return results, False

    async def query_with_knowledge(
        self,
        query: str,
        use_knowledge_base: bool = True,
    ) -> AgentAnswer:
        """Answer a query, grounding it in retrieved passages when available.

        With search results, the query is rewritten to carry the passages and
        that rewritten text becomes the user turn. A retrieval failure is
        logged and the answer is produced without grounding.

        Args:
            query: User query.
            use_knowledge_base: Whether to search for grounding passages.

        Returns:
            The answer, grounding flag and raw sources.

        Raises:
            LLMError: If the completion fails. History is left unchanged.
        """
        async with self._lock:
            sources: list[KnowledgeSearchResult] | None = None
            user_content = query
            grounding = "unused"

            if use_knowledge_base:
                results, degraded = await self._retrieve(query)
                if degraded:
                    grounding = "degraded"
                if results:
                    sources = results
                    user_content = self._grounded_template.build(
                        query, [result.text for result in results]
                    )
                    grounding = "used"

            result = await self._llm.generate(self._messages(user_content))
            self._record_turn(user_content, result.content)

        track_agent_query(self.agent_type.value, grounding)
        logger.info(
            "Agent query completed",
            extra={
                "agent_id": self.agent_id,
                "knowledge_used": sources is not None,
                "history_length": len(self._history),
            },
        )
        return AgentAnswer(
            answer=result.content,
            knowledge_used=sources is not None,
            sources=sources,
            usage=result.usage,
            model=result.model,
        )

    async def multi_step_reasoning(
        self,
        task: str,
        steps: Sequence[ReasoningStep | str],
    ) -> ReasoningResult:
        """Run steps in order, feeding each result into the next prompt.

        The first step sees the task as its context; every later step sees
        the previous step's raw result. A final completion summarizes all
        step results. History is not touched.

        Raises:
            ValidationError: If no steps are given.
            LLMError: If any completion fails.
        """
        if not steps:
            raise ValidationError("At least one reasoning step is required")

        descriptions = [
            step.description if isinstance(step, ReasoningStep) else step
            for step in steps
        ]
        system = Message(role=Role.SYSTEM, content=self.system_prompt)

        results: list[StepResult] = []
        context = task
        for index, description in enumerate(descriptions, start=1):
            prompt = self._step_template.format(
                context=context,
                index=index,
                total=len(descriptions),
                description=description,
            )
            generation = await self._llm.generate(
                [system, Message(role=Role.USER, content=prompt)]
            )
            results.append(
                StepResult(step=index, description=description, result=generation.content)
            )
            context = generation.content
            logger.debug(
                f"Reasoning step {index}/{len(descriptions)} done",
                extra={"agent_id": self.agent_id},
            )

        summary_prompt = self._summary_template.build(
            [(r.step, r.description, r.result) for r in results]
        )
        final = await self._llm.generate(
            [system, Message(role=Role.USER, content=summary_prompt)]
        )

        return ReasoningResult(final_answer=final.content, steps=results)

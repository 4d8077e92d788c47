"""Service wiring for the HTTP layer.

One ``Services`` container is built per process and shared by all requests.
Tests replace it through ``app.dependency_overrides[get_services]``.
"""

from dataclasses import dataclass
from functools import lru_cache

from fastapi import Depends

from knowledge_agent.agents.agent import Agent
from knowledge_agent.agents.intent import IntentAnalyzer
from knowledge_agent.agents.registry import AgentRegistry
from knowledge_agent.config import Settings, get_settings
from knowledge_agent.conversation.manager import SessionManager
from knowledge_agent.conversation.service import ChatService
from knowledge_agent.embeddings.service import HashEmbeddingService
from knowledge_agent.knowledge.service import KnowledgeBase
from knowledge_agent.llm.client import LLMClient, OpenAICompatibleClient
from knowledge_agent.llm.models import ChatMessage
from knowledge_agent.store import InMemoryStore
from knowledge_agent.vectorstore.service import QdrantVectorStore, VectorStore


@dataclass
class Services:
    """Everything a request handler may need."""

    llm_client: LLMClient
    vector_store: VectorStore
    knowledge_base: KnowledgeBase
    chat: ChatService
    agents: AgentRegistry
    intent: IntentAnalyzer

    async def close(self) -> None:
        """Release network clients owned by the services."""
        if isinstance(self.llm_client, OpenAICompatibleClient):
            await self.llm_client.close()
        if isinstance(self.vector_store, QdrantVectorStore):
            await self.vector_store.close()


def build_services(settings: Settings) -> Services:
    """Wire the default implementations from settings."""
    llm_client = OpenAICompatibleClient(settings.llm)
    vector_store = QdrantVectorStore(settings.qdrant)
    knowledge_base = KnowledgeBase(
        HashEmbeddingService(settings.embedding),
        vector_store,
        settings.qdrant,
    )
    sessions = SessionManager(InMemoryStore[list[ChatMessage]](), settings.conversation)
    agents = AgentRegistry(
        InMemoryStore[Agent](),
        llm_client,
        knowledge_base,
        settings.conversation,
    )
    return Services(
        llm_client=llm_client,
        vector_store=vector_store,
        knowledge_base=knowledge_base,
        chat=ChatService(llm_client, sessions),
        agents=agents,
        intent=IntentAnalyzer(llm_client),
    )


@lru_cache
def get_services() -> Services:
    """Get the process-wide services container."""
    return build_services(get_settings())


def get_chat_service(services: Services = Depends(get_services)) -> ChatService:
    return services.chat


def get_knowledge_base(services: Services = Depends(get_services)) -> KnowledgeBase:
    return services.knowledge_base


def get_agent_registry(services: Services = Depends(get_services)) -> AgentRegistry:
    return services.agents


def get_intent_analyzer(services: Services = Depends(get_services)) -> IntentAnalyzer:
    return services.intent

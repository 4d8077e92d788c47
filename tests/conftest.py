"""Pytest configuration and shared fixtures."""

from collections.abc import AsyncGenerator

import pytest
from fakes import FakeLLMClient, FakeVectorStore
from httpx import ASGITransport, AsyncClient

from knowledge_agent.agents.agent import Agent
from knowledge_agent.agents.intent import IntentAnalyzer
from knowledge_agent.agents.registry import AgentRegistry
from knowledge_agent.api.app import app
from knowledge_agent.api.dependencies import Services, get_services
from knowledge_agent.config import ConversationSettings, EmbeddingSettings, QdrantSettings
from knowledge_agent.conversation.manager import SessionManager
from knowledge_agent.conversation.service import ChatService
from knowledge_agent.embeddings.service import HashEmbeddingService
from knowledge_agent.knowledge.service import KnowledgeBase
from knowledge_agent.llm.models import ChatMessage
from knowledge_agent.store import InMemoryStore


@pytest.fixture
def fake_llm() -> FakeLLMClient:
    """Scripted completion client."""
    return FakeLLMClient()


@pytest.fixture
def fake_vector_store() -> FakeVectorStore:
    """In-memory vector store."""
    return FakeVectorStore()


@pytest.fixture
def embedding_service() -> HashEmbeddingService:
    """Hash embedding service with short vectors."""
    return HashEmbeddingService(EmbeddingSettings(dimension=64))


@pytest.fixture
def knowledge_base(
    embedding_service: HashEmbeddingService,
    fake_vector_store: FakeVectorStore,
) -> KnowledgeBase:
    """Knowledge base over the fake vector store."""
    return KnowledgeBase(
        embedding_service,
        fake_vector_store,
        QdrantSettings(collection_name="test_kb", settle_delay=0.0),
    )


@pytest.fixture
def services(
    fake_llm: FakeLLMClient,
    fake_vector_store: FakeVectorStore,
    knowledge_base: KnowledgeBase,
) -> Services:
    """Services container wired with fakes."""
    conversation = ConversationSettings()
    sessions = SessionManager(InMemoryStore[list[ChatMessage]](), conversation)
    return Services(
        llm_client=fake_llm,
        vector_store=fake_vector_store,
        knowledge_base=knowledge_base,
        chat=ChatService(fake_llm, sessions),
        agents=AgentRegistry(InMemoryStore[Agent](), fake_llm, knowledge_base, conversation),
        intent=IntentAnalyzer(fake_llm),
    )


@pytest.fixture
async def client(services: Services) -> AsyncGenerator[AsyncClient, None]:
    """Create async test client for FastAPI app.

    Yields:
        AsyncClient configured for testing.
    """
    app.dependency_overrides[get_services] = lambda: services
    transport = ASGITransport(app=app)
    try:
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()

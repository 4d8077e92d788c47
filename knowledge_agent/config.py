"""Application configuration using Pydantic Settings.

All configuration is loaded from environment variables.
No secrets are hardcoded.
"""

from enum import Enum
from functools import lru_cache

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Application environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class LLMSettings(BaseSettings):
    """Chat completion configuration.

    Targets any OpenAI-compatible endpoint (Groq by default).
    """

    model_config = SettingsConfigDict(env_prefix="LLM_")

    base_url: str = Field(
        default="https://api.groq.com/openai/v1",
        description="Completion API base URL",
    )
    model: str = Field(
        default="llama-3.3-70b-versatile",
        description="Primary model for generation",
    )
    fallback_model: str = Field(
        default="llama-3.1-8b-instant",
        description="Model retried once when the primary model fails",
    )
    api_key: SecretStr = Field(
        default=SecretStr("not-required"),
        description="API key for the completion service",
    )
    timeout: float = Field(
        default=60.0,
        description="Request timeout in seconds",
    )
    max_tokens: int = Field(
        default=2000,
        description="Maximum tokens in response",
    )
    temperature: float = Field(
        default=0.7,
        description="Sampling temperature",
    )
    top_p: float = Field(
        default=1.0,
        description="Nucleus sampling probability mass",
    )
    frequency_penalty: float = Field(
        default=0.0,
        description="Penalty for frequently repeated tokens",
    )
    presence_penalty: float = Field(
        default=0.6,
        description="Penalty for tokens already present",
    )


class EmbeddingSettings(BaseSettings):
    """Local embedding generator configuration."""

    model_config = SettingsConfigDict(env_prefix="EMBEDDING_")

    model: str = Field(
        default="hash-sine-v1",
        description="Name reported for generated embeddings",
    )
    dimension: int = Field(
        default=1536,
        ge=1,
        description="Length of every embedding vector",
    )


class QdrantSettings(BaseSettings):
    """Qdrant vector database configuration."""

    model_config = SettingsConfigDict(env_prefix="QDRANT_")

    url: str = Field(
        default="http://localhost:6333",
        description="Qdrant server URL",
    )
    api_key: SecretStr | None = Field(
        default=None,
        description="Qdrant API key (optional for local)",
    )
    collection_name: str = Field(
        default="knowledge_base",
        description="Collection holding knowledge documents",
    )
    settle_delay: float = Field(
        default=10.0,
        ge=0.0,
        description="Seconds to wait after creating a collection",
    )
    upsert_batch_size: int = Field(
        default=50,
        ge=1,
        description="Documents written per upsert request",
    )


class ConversationSettings(BaseSettings):
    """Session and agent history limits."""

    model_config = SettingsConfigDict(env_prefix="CONVERSATION_")

    session_max_messages: int = Field(
        default=20,
        ge=1,
        description="Messages kept per chat session",
    )
    agent_max_turns: int = Field(
        default=10,
        ge=1,
        description="User/assistant pairs kept per agent",
    )
    knowledge_top_k: int = Field(
        default=3,
        ge=1,
        description="Passages retrieved to ground an agent answer",
    )


class Settings(BaseSettings):
    """Main application settings.

    Aggregates all configuration sections.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application settings
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Application environment",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )

    # API settings
    api_host: str = Field(
        default="0.0.0.0",
        description="API server host",
    )
    api_port: int = Field(
        default=5000,
        description="API server port",
    )

    # Nested settings
    llm: LLMSettings = Field(default_factory=LLMSettings)
    embedding: EmbeddingSettings = Field(default_factory=EmbeddingSettings)
    qdrant: QdrantSettings = Field(default_factory=QdrantSettings)
    conversation: ConversationSettings = Field(default_factory=ConversationSettings)


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Settings instance loaded from environment.
    """
    return Settings()

"""Application exception hierarchy.

All custom exceptions inherit from KnowledgeAgentError.
Each exception has an error code for structured error handling.
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Error codes for structured error handling."""

    # General errors (1xxx)
    INTERNAL_ERROR = "RAG-1000"
    CONFIGURATION_ERROR = "RAG-1001"
    VALIDATION_ERROR = "RAG-1002"

    # Document processing errors (2xxx)
    DOCUMENT_NOT_FOUND = "RAG-2000"
    DOCUMENT_PARSE_ERROR = "RAG-2001"

    # Embedding errors (3xxx)
    EMBEDDING_ERROR = "RAG-3000"
    EMBEDDING_DIMENSION_MISMATCH = "RAG-3001"

    # Vector store errors (4xxx)
    VECTOR_STORE_ERROR = "RAG-4000"
    COLLECTION_NOT_FOUND = "RAG-4001"
    COLLECTION_EXISTS = "RAG-4002"
    VECTOR_UPSERT_ERROR = "RAG-4003"
    VECTOR_DELETE_ERROR = "RAG-4004"
    INDEX_INIT_ERROR = "RAG-4005"

    # LLM errors (5xxx)
    LLM_SERVICE_ERROR = "RAG-5000"
    LLM_TIMEOUT = "RAG-5001"
    LLM_RATE_LIMIT = "RAG-5002"
    LLM_FALLBACK_EXHAUSTED = "RAG-5003"
    LLM_STREAM_ERROR = "RAG-5004"

    # Retrieval errors (6xxx)
    RETRIEVAL_ERROR = "RAG-6000"

    # Agent errors (7xxx)
    AGENT_NOT_FOUND = "RAG-7000"
    AGENT_ERROR = "RAG-7001"


class KnowledgeAgentError(Exception):
    """Base exception for all knowledge agent errors.

    Attributes:
        message: Human-readable error message.
        code: Structured error code.
        details: Additional error context.
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": {
                "code": self.code.value,
                "message": self.message,
                "details": self.details,
            }
        }


class ConfigurationError(KnowledgeAgentError):
    """Configuration or environment error."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.CONFIGURATION_ERROR, details)


class ValidationError(KnowledgeAgentError):
    """Input validation error."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.VALIDATION_ERROR, details)


class DocumentError(KnowledgeAgentError):
    """Document loading error."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.DOCUMENT_NOT_FOUND,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class EmbeddingError(KnowledgeAgentError):
    """Embedding generation error."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.EMBEDDING_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class VectorStoreError(KnowledgeAgentError):
    """Vector store operation error."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.VECTOR_STORE_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class LLMError(KnowledgeAgentError):
    """Completion service error."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.LLM_SERVICE_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class RetrievalError(KnowledgeAgentError):
    """Knowledge retrieval error.

    Agents treat this as non-fatal and answer without grounding.
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.RETRIEVAL_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class AgentError(KnowledgeAgentError):
    """Agent lookup or lifecycle error."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.AGENT_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)

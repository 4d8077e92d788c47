"""Tests for application exceptions."""

from knowledge_agent.exceptions import (
    AgentError,
    ConfigurationError,
    DocumentError,
    EmbeddingError,
    ErrorCode,
    KnowledgeAgentError,
    LLMError,
    RetrievalError,
    ValidationError,
    VectorStoreError,
)


class TestErrorCode:
    """Tests for error codes."""

    def test_error_code_format(self) -> None:
        """Error codes follow RAG-XXXX format."""
        for code in ErrorCode:
            assert code.value.startswith("RAG-")
            assert len(code.value) == 8  # RAG-XXXX

    def test_error_code_uniqueness(self) -> None:
        """All error codes are unique."""
        codes = [code.value for code in ErrorCode]
        assert len(codes) == len(set(codes))


class TestKnowledgeAgentError:
    """Tests for base exception."""

    def test_basic_exception(self) -> None:
        """Base exception stores message and code."""
        error = KnowledgeAgentError("Something went wrong")
        assert error.message == "Something went wrong"
        assert error.code == ErrorCode.INTERNAL_ERROR
        assert error.details == {}

    def test_exception_with_details(self) -> None:
        """Exception can have additional details."""
        error = KnowledgeAgentError(
            "Validation failed",
            code=ErrorCode.VALIDATION_ERROR,
            details={"field": "query", "reason": "too short"},
        )
        assert error.details == {"field": "query", "reason": "too short"}

    def test_to_dict(self) -> None:
        """Exception converts to API response dict."""
        error = KnowledgeAgentError(
            "Something went wrong",
            code=ErrorCode.INTERNAL_ERROR,
            details={"trace_id": "abc123"},
        )
        assert error.to_dict() == {
            "error": {
                "code": "RAG-1000",
                "message": "Something went wrong",
                "details": {"trace_id": "abc123"},
            }
        }

    def test_str_representation(self) -> None:
        """Exception string is the message."""
        error = KnowledgeAgentError("Test error")
        assert str(error) == "Test error"


class TestDefaultCodes:
    """Each subclass carries its own default code."""

    def test_configuration_error(self) -> None:
        error = ConfigurationError("Missing env var")
        assert error.code == ErrorCode.CONFIGURATION_ERROR
        assert isinstance(error, KnowledgeAgentError)

    def test_validation_error(self) -> None:
        assert ValidationError("Invalid input").code == ErrorCode.VALIDATION_ERROR

    def test_document_error(self) -> None:
        assert DocumentError("Missing").code == ErrorCode.DOCUMENT_NOT_FOUND

    def test_embedding_error(self) -> None:
        assert EmbeddingError("Bad vector").code == ErrorCode.EMBEDDING_ERROR

    def test_vector_store_error(self) -> None:
        assert VectorStoreError("Connection failed").code == ErrorCode.VECTOR_STORE_ERROR

    def test_llm_error(self) -> None:
        assert LLMError("Model unavailable").code == ErrorCode.LLM_SERVICE_ERROR

    def test_retrieval_error(self) -> None:
        assert RetrievalError("Search failed").code == ErrorCode.RETRIEVAL_ERROR

    def test_agent_error(self) -> None:
        assert AgentError("Lifecycle").code == ErrorCode.AGENT_ERROR


class TestCustomCodes:
    """Subclasses accept a more specific code."""

    def test_document_parse_error(self) -> None:
        error = DocumentError("Failed to parse", code=ErrorCode.DOCUMENT_PARSE_ERROR)
        assert error.code == ErrorCode.DOCUMENT_PARSE_ERROR

    def test_llm_fallback_exhausted(self) -> None:
        error = LLMError("Both models failed", code=ErrorCode.LLM_FALLBACK_EXHAUSTED)
        assert error.code.value == "RAG-5003"

    def test_agent_not_found(self) -> None:
        error = AgentError("No agent", code=ErrorCode.AGENT_NOT_FOUND)
        assert error.to_dict()["error"]["code"] == "RAG-7000"

"""Embedding service module."""

from knowledge_agent.embeddings.models import EmbeddingResult
from knowledge_agent.embeddings.service import EmbeddingService, HashEmbeddingService

__all__ = [
    "EmbeddingResult",
    "EmbeddingService",
    "HashEmbeddingService",
]

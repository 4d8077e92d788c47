"""Vector store module."""

from knowledge_agent.vectorstore.models import IndexStats, SearchResult, VectorRecord
from knowledge_agent.vectorstore.service import QdrantVectorStore, VectorStore, point_id

__all__ = [
    "IndexStats",
    "QdrantVectorStore",
    "SearchResult",
    "VectorRecord",
    "VectorStore",
    "point_id",
]

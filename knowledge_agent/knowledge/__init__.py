"""Knowledge base module."""

from knowledge_agent.knowledge.models import IngestResult, KnowledgeSearchResult
from knowledge_agent.knowledge.service import KnowledgeBase

__all__ = [
    "IngestResult",
    "KnowledgeBase",
    "KnowledgeSearchResult",
]

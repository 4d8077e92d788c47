"""Document processing module."""

from knowledge_agent.documents.chunker import (
    Chunker,
    ChunkerConfig,
    SentenceChunker,
    split_text,
)
from knowledge_agent.documents.loader import DocumentLoader, TextFileLoader
from knowledge_agent.documents.models import Document, MetadataValue

__all__ = [
    "Chunker",
    "ChunkerConfig",
    "Document",
    "DocumentLoader",
    "MetadataValue",
    "SentenceChunker",
    "TextFileLoader",
    "split_text",
]

"""Text chunking for document ingestion."""

import re
import time
from abc import ABC, abstractmethod
from collections.abc import Mapping

from pydantic import BaseModel, Field

from knowledge_agent.documents.models import Document, MetadataValue


class ChunkerConfig(BaseModel):
    """Configuration for text chunking.

    Attributes:
        chunk_size: Maximum chunk length in characters. A single sentence
            longer than this still becomes one chunk.
    """

    chunk_size: int = Field(default=1000, ge=1, description="Maximum chunk size")


class Chunker(ABC):
    """Abstract base class for text chunkers."""

    def __init__(self, config: ChunkerConfig | None = None) -> None:
        """Initialize chunker with configuration.

        Args:
            config: Chunking configuration. Uses defaults if not provided.
        """
        self.config = config or ChunkerConfig()

    @abstractmethod
    def split(self, text: str) -> list[str]:
        """Split text into trimmed, non-empty chunks, in order."""
        ...

    def chunk(
        self,
        text: str,
        metadata: Mapping[str, MetadataValue] | None = None,
    ) -> list[Document]:
        """Split text into documents ready for upsert.

        Ids follow ``{source}_chunk_{index}_{epoch_ms}`` (``doc`` when the
        metadata carries no source). Each chunk gets ``chunk_index`` and
        ``total_chunks`` on top of the given metadata.
        """
        metadata = dict(metadata or {})
        pieces = self.split(text)
        prefix = metadata.get("source") or "doc"
        stamp = int(time.time() * 1000)

        return [
            Document(
                id=f"{prefix}_chunk_{index}_{stamp}",
                text=piece,
                metadata={
                    **metadata,
                    "chunk_index": index,
                    "total_chunks": len(pieces),
                },
            )
            for index, piece in enumerate(pieces)
        ]


class SentenceChunker(Chunker):
    """Greedy sentence packer.

    Sentences are runs of text ending in ``.``, ``!`` or ``?``; text after
    the last terminator counts as a final sentence. Sentences are appended to
    the current chunk while the result stays within ``chunk_size`` and are
    never split.
    """

    SENTENCE_PATTERN = re.compile(r"[^.!?]*[.!?]+|[^.!?]+$")

    def split(self, text: str) -> list[str]:
        """Split text on sentence boundaries.

        Args:
            text: Text to split.

        Returns:
            List of chunks.
        """
        sentences = self.SENTENCE_PATTERN.findall(text) or [text]

        chunks: list[str] = []
        current = ""
        for sentence in sentences:
            if len(current + sentence) <= self.config.chunk_size:
                current += sentence
                continue
            if current:
                chunks.append(current.strip())
            current = sentence

        if current:
            chunks.append(current.strip())

        return [chunk for chunk in chunks if chunk]


def split_text(text: str, chunk_size: int = 1000) -> list[str]:
    """Split text with a :class:`SentenceChunker` of the given size."""
    return SentenceChunker(ChunkerConfig(chunk_size=chunk_size)).split(text)

"""Vector store data models."""

from typing import Any

from pydantic import BaseModel, Field


class VectorRecord(BaseModel):
    """A record to store in the vector database.

    Attributes:
        id: Document identifier, any non-empty string.
        vector: The embedding vector.
        payload: Additional metadata to store with the vector.
    """

    id: str = Field(min_length=1, description="Document identifier")
    vector: list[float] = Field(description="Embedding vector")
    payload: dict[str, Any] = Field(
        default_factory=dict,
        description="Metadata payload",
    )


class SearchResult(BaseModel):
    """Result from a vector similarity search.

    Attributes:
        id: Document identifier.
        score: Cosine similarity (higher is more similar).
        payload: Stored metadata.
    """

    id: str = Field(description="Document identifier")
    score: float = Field(description="Similarity score")
    payload: dict[str, Any] = Field(
        default_factory=dict,
        description="Record metadata",
    )


class IndexStats(BaseModel):
    """Summary of a collection."""

    collection: str = Field(description="Collection name")
    total_record_count: int = Field(default=0, description="Stored vectors")
    dimension: int | None = Field(default=None, description="Vector length")
    status: str = Field(default="unknown", description="Collection status")

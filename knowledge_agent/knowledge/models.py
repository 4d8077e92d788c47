"""Knowledge base data models."""

from typing import Any

from pydantic import BaseModel, Field


class KnowledgeSearchResult(BaseModel):
    """A document matched by a similarity search.

    Attributes:
        id: Document identifier.
        score: Cosine similarity in ``[-1, 1]``.
        text: Stored document text.
        metadata: Stored metadata, without the text.
    """

    id: str = Field(description="Document identifier")
    score: float = Field(description="Similarity score")
    text: str = Field(default="", description="Document text")
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Document metadata",
    )


class IngestResult(BaseModel):
    """Outcome of chunking and uploading a long text."""

    chunks: int = Field(description="Number of chunks produced")
    total_documents: int = Field(description="Documents written to the index")
    document_ids: list[str] = Field(
        default_factory=list,
        description="Ids assigned to the chunks",
    )

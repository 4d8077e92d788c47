"""Document data models."""

from pathlib import Path

from pydantic import BaseModel, Field

MetadataValue = str | int | float | bool

FILE_TYPES = {
    ".txt": "text/plain",
    ".text": "text/plain",
    ".md": "text/markdown",
    ".markdown": "text/markdown",
    ".rst": "text/x-rst",
}


class Document(BaseModel):
    """A unit of knowledge stored in the vector index.

    Attributes:
        id: Unique document identifier. Upserting the same id replaces it.
        text: The text content, embedded and returned with search results.
        metadata: Flat scalar metadata, usable in exact-match filters.
    """

    id: str = Field(min_length=1, description="Unique document identifier")
    text: str = Field(min_length=1, description="Document text")
    metadata: dict[str, MetadataValue] = Field(
        default_factory=dict,
        description="Scalar metadata fields",
    )

    def payload(self) -> dict[str, MetadataValue]:
        """Index payload: the text plus metadata."""
        return {"text": self.text, **self.metadata}


def file_type_for(path: Path) -> str:
    """Determine file type from extension."""
    return FILE_TYPES.get(path.suffix.lower(), "text/plain")

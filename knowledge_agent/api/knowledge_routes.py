"""Knowledge base endpoints."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from knowledge_agent.api.dependencies import get_knowledge_base
from knowledge_agent.documents.models import Document, MetadataValue
from knowledge_agent.knowledge.models import IngestResult, KnowledgeSearchResult
from knowledge_agent.knowledge.service import KnowledgeBase
from knowledge_agent.vectorstore.models import IndexStats

router = APIRouter(prefix="/api/knowledge", tags=["Knowledge"])


class UploadRequest(BaseModel):
    """Documents to add or replace."""

    documents: list[Document] = Field(min_length=1, description="Documents")


class UploadResponse(BaseModel):
    """Outcome of an upload."""

    count: int = Field(description="Documents written")


class SearchRequest(BaseModel):
    """Similarity search request."""

    query: str = Field(min_length=1, description="Query text")
    top_k: int = Field(default=5, ge=1, le=100, description="Maximum results")
    filter: dict[str, MetadataValue] = Field(
        default_factory=dict,
        description="Exact-match metadata filter",
    )


class SearchResponse(BaseModel):
    """Similarity search results."""

    query: str = Field(description="Query text")
    results: list[KnowledgeSearchResult] = Field(description="Matches, best first")
    count: int = Field(description="Number of matches")


class DeleteRequest(BaseModel):
    """Documents to delete."""

    ids: list[str] = Field(min_length=1, description="Document ids")


class DeleteResponse(BaseModel):
    """Outcome of a delete or clear."""

    deleted_count: int = Field(description="Documents removed")


class BatchUploadRequest(BaseModel):
    """Long text to chunk and upload."""

    text: str = Field(min_length=1, description="Text to chunk")
    metadata: dict[str, MetadataValue] = Field(
        default_factory=dict,
        description="Metadata copied onto every chunk",
    )
    chunk_size: int = Field(default=1000, ge=1, description="Maximum chunk size")


@router.post("/upload", response_model=UploadResponse)
async def upload_documents(
    request: UploadRequest,
    knowledge: KnowledgeBase = Depends(get_knowledge_base),
) -> UploadResponse:
    """Embed and store documents."""
    count = await knowledge.upsert(request.documents)
    return UploadResponse(count=count)


@router.post("/search", response_model=SearchResponse)
async def search_documents(
    request: SearchRequest,
    knowledge: KnowledgeBase = Depends(get_knowledge_base),
) -> SearchResponse:
    """Find documents similar to the query."""
    results = await knowledge.search(request.query, request.top_k, request.filter)
    return SearchResponse(query=request.query, results=results, count=len(results))


@router.delete("/documents", response_model=DeleteResponse)
async def delete_documents(
    request: DeleteRequest,
    knowledge: KnowledgeBase = Depends(get_knowledge_base),
) -> DeleteResponse:
    """Delete documents by id."""
    return DeleteResponse(deleted_count=await knowledge.delete(request.ids))


@router.get("/stats", response_model=IndexStats)
async def index_stats(
    knowledge: KnowledgeBase = Depends(get_knowledge_base),
) -> IndexStats:
    """Describe the knowledge collection."""
    return await knowledge.stats()


@router.delete("/clear", response_model=DeleteResponse)
async def clear_index(
    knowledge: KnowledgeBase = Depends(get_knowledge_base),
) -> DeleteResponse:
    """Remove every document."""
    return DeleteResponse(deleted_count=await knowledge.clear())


@router.post("/batch-upload", response_model=IngestResult)
async def batch_upload(
    request: BatchUploadRequest,
    knowledge: KnowledgeBase = Depends(get_knowledge_base),
) -> IngestResult:
    """Chunk a long text on sentence boundaries and store the chunks."""
    return await knowledge.ingest_text(
        request.text,
        metadata=request.metadata,
        chunk_size=request.chunk_size,
    )

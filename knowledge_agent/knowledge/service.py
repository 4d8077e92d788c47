"""Knowledge base: embedding-backed document storage and similarity search."""

from collections.abc import Mapping, Sequence
from typing import Any

from knowledge_agent.config import QdrantSettings, get_settings
from knowledge_agent.documents.chunker import ChunkerConfig, SentenceChunker
from knowledge_agent.documents.models import Document, MetadataValue
from knowledge_agent.embeddings.service import EmbeddingService
from knowledge_agent.exceptions import ErrorCode, RetrievalError
from knowledge_agent.knowledge.models import IngestResult, KnowledgeSearchResult
from knowledge_agent.logging_config import get_logger
from knowledge_agent.observability.metrics import track_retrieval_request
from knowledge_agent.vectorstore.models import IndexStats, VectorRecord
from knowledge_agent.vectorstore.service import VectorStore

logger = get_logger(__name__)


class KnowledgeBase:
    """Documents in one vector collection, addressed by text.

    Every document is embedded with the configured embedding service before
    it is written; queries are embedded the same way before searching.
    """

    def __init__(
        self,
        embedding_service: EmbeddingService,
        vector_store: VectorStore,
        settings: QdrantSettings | None = None,
    ) -> None:
        """Initialize the knowledge base.

        Args:
            embedding_service: Service for generating embeddings.
            vector_store: Vector database holding the collection.
            settings: Collection name, batch size and settle delay.
        """
        self._embedding_service = embedding_service
        self._vector_store = vector_store
        self._settings = settings or get_settings().qdrant

    @property
    def collection(self) -> str:
        """Name of the backing collection."""
        return self._settings.collection_name

    async def _ready(self) -> None:
        await self._vector_store.ensure_collection(
            self.collection, self._embedding_service.dimensions
        )

    async def upsert(self, documents: Sequence[Document]) -> int:
        """Embed and write documents in fixed-size batches.

        Batches are sent in input order with the partial batch last. A failed
        batch raises; batches already sent stay written.

        Raises:
            VectorStoreError: If a batch cannot be written.
        """
        if not documents:
            return 0

        await self._ready()

        batch_size = self._settings.upsert_batch_size
        batch: list[VectorRecord] = []
        written = 0

        for document in documents:
            embedding = self._embedding_service.embed(document.text)
            batch.append(
                VectorRecord(
                    id=document.id,
                    vector=embedding.embedding,
                    payload=document.payload(),
                )
            )
            if len(batch) >= batch_size:
                written += await self._vector_store.upsert(self.collection, batch)
                batch = []

        if batch:
            written += await self._vector_store.upsert(self.collection, batch)

        logger.info(
            f"Upserted {written} documents",
            extra={"collection": self.collection, "documents": len(documents)},
        )
        return written

    async def search(
        self,
        query: str,
        top_k: int = 5,
        filters: dict[str, Any] | None = None,
    ) -> list[KnowledgeSearchResult]:
        """Find the documents most similar to ``query``.

        Args:
            query: Query text.
            top_k: Maximum number of results.
            filters: Exact-match metadata filters.

        Returns:
            Results in index order (descending score).

        Raises:
            RetrievalError: If embedding or search fails.
        """
        if not query.strip():
            return []

        try:
            await self._ready()
            embedding = self._embedding_service.embed(query)
            hits = await self._vector_store.search(
                collection=self.collection,
                vector=embedding.embedding,
                limit=top_k,
                filters=filters or None,
            )
        except Exception as e:
            logger.error(f"Retrieval failed: {e}")
            raise RetrievalError(
                f"Failed to search documents: {e}",
                code=ErrorCode.RETRIEVAL_ERROR,
                details={"query": query[:100], "error": str(e)},
            ) from e

        results: list[KnowledgeSearchResult] = []
        for hit in hits:
            metadata = dict(hit.payload)
            text = metadata.pop("text", "")
            results.append(
                KnowledgeSearchResult(
                    id=hit.id,
                    score=hit.score,
                    text=str(text),
                    metadata=metadata,
                )
            )

        track_retrieval_request(
            chunks_returned=len(results),
            top_score=results[0].score if results else 0.0,
        )
        logger.debug(
            f"Retrieved {len(results)} results for query",
            extra={"query_length": len(query), "top_k": top_k},
        )
        return results

    async def delete(self, ids: Sequence[str]) -> int:
        """Delete documents by id and return how many were requested."""
        await self._ready()
        return await self._vector_store.delete(self.collection, list(ids))

    async def stats(self) -> IndexStats:
        """Describe the backing collection."""
        await self._ready()
        return await self._vector_store.stats(self.collection)

    async def clear(self) -> int:
        """Remove every document and return the number removed."""
        await self._ready()
        return await self._vector_store.clear(self.collection)

    async def ingest_text(
        self,
        text: str,
        metadata: Mapping[str, MetadataValue] | None = None,
        chunk_size: int = 1000,
    ) -> IngestResult:
        """Chunk a long text on sentence boundaries and upsert the chunks."""
        chunker = SentenceChunker(ChunkerConfig(chunk_size=chunk_size))
        documents = chunker.chunk(text, metadata)
        written = await self.upsert(documents)
        return IngestResult(
            chunks=len(documents),
            total_documents=written,
            document_ids=[document.id for document in documents],
        )

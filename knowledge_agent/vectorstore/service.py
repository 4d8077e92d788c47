"""Vector store interface and Qdrant implementation."""

import asyncio
from abc import ABC, abstractmethod
from typing import Any
from uuid import NAMESPACE_URL, uuid5

from qdrant_client import AsyncQdrantClient
from qdrant_client.models import (
    Distance,
    FieldCondition,
    Filter,
    FilterSelector,
    MatchValue,
    PointIdsList,
    PointStruct,
    Range,
    VectorParams,
)

from knowledge_agent.config import QdrantSettings, get_settings
from knowledge_agent.exceptions import ErrorCode, VectorStoreError
from knowledge_agent.logging_config import get_logger
from knowledge_agent.observability.metrics import track_vectorstore_operation
from knowledge_agent.vectorstore.models import IndexStats, SearchResult, VectorRecord

logger = get_logger(__name__)

DOCUMENT_ID_KEY = "document_id"


def point_id(document_id: str) -> str:
    """Map an arbitrary document id onto a stable Qdrant point id."""
    return str(uuid5(NAMESPACE_URL, document_id))


def build_filter(filters: dict[str, Any] | None) -> Filter | None:
    """Turn exact-match metadata filters into a Qdrant filter.

    ``MatchValue`` only takes bool, int and str, so floats are matched
    with a closed range on the same value.
    """
    if not filters:
        return None

    conditions = []
    for key, value in filters.items():
        if isinstance(value, float):
            conditions.append(FieldCondition(key=key, range=Range(gte=value, lte=value)))
        else:
            conditions.append(FieldCondition(key=key, match=MatchValue(value=value)))
    return Filter(must=conditions)  # type: ignore[arg-type]


class VectorStore(ABC):
    """Abstract base class for vector stores.

    Defines the interface for storing and searching vectors.
    """

    @abstractmethod
    async def ensure_collection(self, name: str, dimensions: int) -> None:
        """Create the collection if it is missing and wait until it is usable.

        Args:
            name: Collection name.
            dimensions: Vector dimensions.

        Raises:
            VectorStoreError: If the collection cannot be initialized.
        """
        ...

    @abstractmethod
    async def collection_exists(self, name: str) -> bool:
        """Check if a collection exists.

        Args:
            name: Collection name.

        Returns:
            True if collection exists.
        """
        ...

    @abstractmethod
    async def upsert(
        self,
        collection: str,
        records: list[VectorRecord],
    ) -> int:
        """Insert or replace records.

        Args:
            collection: Collection name.
            records: Records to upsert.

        Returns:
            Number of records upserted.

        Raises:
            VectorStoreError: If upsert fails.
        """
        ...

    @abstractmethod
    async def search(
        self,
        collection: str,
        vector: list[float],
        limit: int = 10,
        filters: dict[str, Any] | None = None,
    ) -> list[SearchResult]:
        """Search for similar vectors.

        Args:
            collection: Collection name.
            vector: Query vector.
            limit: Maximum results to return.
            filters: Optional exact-match payload filters.

        Returns:
            Results ordered by descending score.

        Raises:
            VectorStoreError: If search fails.
        """
        ...

    @abstractmethod
    async def delete(
        self,
        collection: str,
        ids: list[str],
    ) -> int:
        """Delete records by ID.

        Args:
            collection: Collection name.
            ids: Record IDs to delete.

        Returns:
            Number of records deleted.

        Raises:
            VectorStoreError: If deletion fails.
        """
        ...

    @abstractmethod
    async def stats(self, collection: str) -> IndexStats:
        """Describe a collection."""
        ...

    @abstractmethod
    async def clear(self, collection: str) -> int:
        """Remove every record from a collection.

        Returns:
            Number of records removed.
        """
        ...


class QdrantVectorStore(VectorStore):
    """Qdrant vector store implementation.

    The client is created once on first use. Concurrent first calls share a
    single client.
    """

    def __init__(
        self,
        settings: QdrantSettings | None = None,
        client: AsyncQdrantClient | None = None,
    ) -> None:
        """Initialize Qdrant vector store.

        Args:
            settings: Qdrant configuration.
            client: Existing client (for testing).
        """
        self._settings = settings or get_settings().qdrant
        self._client = client
        self._owns_client = client is None
        self._client_lock = asyncio.Lock()
        self._collection_lock = asyncio.Lock()
        self._ready_collections: set[str] = set()

    async def _get_client(self) -> AsyncQdrantClient:
        """Get or create Qdrant client."""
        if self._client is not None:
            return self._client

        async with self._client_lock:
            if self._client is None:
                api_key = None
                if self._settings.api_key:
                    api_key = self._settings.api_key.get_secret_value()

                self._client = AsyncQdrantClient(
                    url=self._settings.url,
                    api_key=api_key,
                )
                logger.info("Connected to Qdrant", extra={"url": self._settings.url})
        return self._client

    async def close(self) -> None:
        """Close the Qdrant client."""
        if self._owns_client and self._client is not None:
            await self._client.close()
            self._client = None
        self._ready_collections.clear()

    async def ensure_collection(self, name: str, dimensions: int) -> None:
        """Create the collection with cosine distance if absent.

        A newly created collection is only reported ready after the
        configured settle delay. Readiness is remembered per collection.
        """
        if name in self._ready_collections:
            return

        async with self._collection_lock:
            if name in self._ready_collections:
                return

            client = await self._get_client()
            try:
                with track_vectorstore_operation("ensure_collection"):
                    if await client.collection_exists(name):
                        logger.debug(f"Collection already exists: {name}")
                    else:
                        await client.create_collection(
                            collection_name=name,
                            vectors_config=VectorParams(
                                size=dimensions,
                                distance=Distance.COSINE,
                            ),
                        )
                        logger.info(
                            f"Created collection: {name}",
                            extra={"dimensions": dimensions},
                        )
                        await asyncio.sleep(self._settings.settle_delay)
            except Exception as e:
                raise VectorStoreError(
                    f"Failed to initialize collection: {e}",
                    code=ErrorCode.INDEX_INIT_ERROR,
                    details={"collection": name, "error": str(e)},
                ) from e

            self._ready_collections.add(name)

    async def collection_exists(self, name: str) -> bool:
        """Check if collection exists."""
        client = await self._get_client()
        try:
            return await client.collection_exists(name)
        except Exception as e:
            raise VectorStoreError(
                f"Failed to check collection: {e}",
                code=ErrorCode.VECTOR_STORE_ERROR,
                details={"collection": name, "error": str(e)},
            ) from e

    async def upsert(
        self,
        collection: str,
        records: list[VectorRecord],
    ) -> int:
        """Upsert records into collection."""
        if not records:
            return 0

        client = await self._get_client()

        try:
            points = [
                PointStruct(
                    id=point_id(record.id),
                    vector=record.vector,
                    payload={**record.payload, DOCUMENT_ID_KEY: record.id},
                )
                for record in records
            ]

            with track_vectorstore_operation("upsert"):
                await client.upsert(
                    collection_name=collection,
                    points=points,
                )

            logger.debug(
                f"Upserted {len(points)} records",
                extra={"collection": collection},
            )
            return len(points)

        except Exception as e:
            raise VectorStoreError(
                f"Failed to upsert records: {e}",
                code=ErrorCode.VECTOR_UPSERT_ERROR,
                details={"collection": collection, "error": str(e)},
            ) from e

    async def search(
        self,
        collection: str,
        vector: list[float],
        limit: int = 10,
        filters: dict[str, Any] | None = None,
    ) -> list[SearchResult]:
        """Search for similar vectors."""
        client = await self._get_client()

        try:
            query_filter = build_filter(filters)

            with track_vectorstore_operation("search"):
                results = await client.query_points(
                    collection_name=collection,
                    query=vector,
                    limit=limit,
                    query_filter=query_filter,
                    with_payload=True,
                )

            return [self._to_result(point) for point in results.points]

        except Exception as e:
            raise VectorStoreError(
                f"Failed to search: {e}",
                code=ErrorCode.VECTOR_STORE_ERROR,
                details={"collection": collection, "error": str(e)},
            ) from e

    def _to_result(self, point: Any) -> SearchResult:
        payload = dict(point.payload) if point.payload else {}
        document_id = payload.pop(DOCUMENT_ID_KEY, None)
        return SearchResult(
            id=str(document_id if document_id is not None else point.id),
            score=point.score if point.score is not None else 0.0,
            payload=payload,
        )

    async def delete(
        self,
        collection: str,
        ids: list[str],
    ) -> int:
        """Delete records by ID."""
        if not ids:
            return 0

        client = await self._get_client()

        try:
            with track_vectorstore_operation("delete"):
                await client.delete(
                    collection_name=collection,
                    points_selector=PointIdsList(
                        points=[point_id(doc_id) for doc_id in ids],  # type: ignore[misc]
                    ),
                )

            logger.debug(
                f"Deleted {len(ids)} records",
                extra={"collection": collection},
            )
            return len(ids)

        except Exception as e:
            raise VectorStoreError(
                f"Failed to delete records: {e}",
                code=ErrorCode.VECTOR_DELETE_ERROR,
                details={"collection": collection, "error": str(e)},
            ) from e

    async def stats(self, collection: str) -> IndexStats:
        """Describe a collection: point count, vector size and status."""
        client = await self._get_client()

        try:
            with track_vectorstore_operation("stats"):
                info = await client.get_collection(collection)
        except Exception as e:
            raise VectorStoreError(
                f"Failed to read collection stats: {e}",
                code=ErrorCode.VECTOR_STORE_ERROR,
                details={"collection": collection, "error": str(e)},
            ) from e

        vectors = info.config.params.vectors
        dimension = getattr(vectors, "size", None)
        status = getattr(info.status, "value", info.status)
        return IndexStats(
            collection=collection,
            total_record_count=info.points_count or 0,
            dimension=dimension,
            status=str(status),
        )

    async def clear(self, collection: str) -> int:
        """Delete every point, keeping the collection itself."""
        client = await self._get_client()

        try:
            with track_vectorstore_operation("clear"):
                counted = await client.count(collection_name=collection, exact=True)
                await client.delete(
                    collection_name=collection,
                    points_selector=FilterSelector(filter=Filter(must=[])),
                )
        except Exception as e:
            raise VectorStoreError(
                f"Failed to clear collection: {e}",
                code=ErrorCode.VECTOR_DELETE_ERROR,
                details={"collection": collection, "error": str(e)},
            ) from e

        logger.info(f"Cleared {counted.count} records", extra={"collection": collection})
        return counted.count

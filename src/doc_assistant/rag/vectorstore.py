"""
Vector Store Module

Uses ChromaDB for storing and searching document chunk embeddings.

Hosted Chroma (CHROMA_API_KEY / CHROMA_TENANT / CHROMA_DATABASE) is used in
production; RAG_VECTOR_DB_PATH switches to a local persistent client for
development. Either way the collection uses cosine distance, and similarity
scores are reported as 1 - distance.
"""

import asyncio
from typing import Any, Optional
import chromadb
from chromadb.config import Settings as ChromaSettings

from ..config import Settings
from ..utils.errors import VectorStoreError
from ..utils.logger import get_logger

logger = get_logger(__name__)


def create_chroma_client(settings: Settings) -> Any:
    """
    Build a Chroma client from settings.

    Raises:
        ConfigurationMissing: if neither a local path nor hosted credentials are set
    """
    settings.require_vector_store()

    if settings.vector_db_path:
        logger.info(f"Using local Chroma store at {settings.vector_db_path}")
        return chromadb.PersistentClient(
            path=settings.vector_db_path,
            settings=ChromaSettings(anonymized_telemetry=False),
        )

    logger.info(f"Using hosted Chroma database {settings.chroma_database}")
    return chromadb.CloudClient(
        tenant=settings.chroma_tenant,
        database=settings.chroma_database,
        api_key=settings.chroma_api_key,
    )


class VectorStore:
    """
    Document chunk store backed by a Chroma collection.

    The collection is resolved lazily so the process can start before the
    collection has been set up.
    """

    def __init__(self, client: Any, collection_name: str, dimension: int):
        self.client = client
        self.collection_name = collection_name
        self.dimension = dimension
        self._collection: Optional[Any] = None

    def ensure_collection(self) -> bool:
        """
        Get or create the collection.

        Returns:
            True if the collection already existed
        """
        existed = self.collection_name in self._list_collection_names()
        try:
            self._collection = self.client.get_or_create_collection(
                name=self.collection_name,
                metadata={"hnsw:space": "cosine", "dimension": self.dimension},
                embedding_function=None,
            )
        except Exception as e:
            raise VectorStoreError("setup", str(e)) from e
        return existed

    def _list_collection_names(self) -> list[str]:
        try:
            collections = self.client.list_collections()
        except Exception as e:
            raise VectorStoreError("list collections", str(e)) from e
        # Chroma returns names in newer releases and Collection objects in older ones
        return [getattr(c, "name", c) for c in collections]

    def get_collection(self) -> Any:
        """Get the collection, creating it on first use."""
        if self._collection is None:
            self.ensure_collection()
        return self._collection

    async def _run(self, method: str, **kwargs) -> Any:
        """
        Call a collection method in a worker thread.

        Chroma's client API is synchronous (hosted Chroma does blocking HTTP),
        so calls are moved off the event loop.
        """
        collection = await asyncio.to_thread(self.get_collection)
        try:
            return await asyncio.to_thread(getattr(collection, method), **kwargs)
        except Exception as e:
            raise VectorStoreError(method, str(e)) from e

    async def upsert(
        self,
        ids: list[str],
        texts: list[str],
        embeddings: list[list[float]],
        metadatas: list[dict],
    ) -> None:
        """
        Insert or replace chunks.

        Raises:
            VectorStoreError: on a dimension mismatch or a failed upsert
        """
        for vector_id, embedding in zip(ids, embeddings):
            if len(embedding) != self.dimension:
                raise VectorStoreError(
                    "upsert",
                    f"vector {vector_id} has dimension {len(embedding)}, "
                    f"collection expects {self.dimension}",
                )

        await self._run(
            "upsert",
            ids=ids,
            documents=texts,
            embeddings=embeddings,
            metadatas=metadatas,
        )

    async def query(
        self,
        query_embedding: list[float],
        limit: int = 5,
        where: Optional[dict] = None,
    ) -> list[dict]:
        """
        Search for the nearest chunks.

        Args:
            query_embedding: The embedding vector of the search query
            limit: Maximum number of results
            where: Optional metadata filter

        Returns:
            List of matches: {"id", "text", "metadata", "score"}
        """
        results = await self._run(
            "query",
            query_embeddings=[query_embedding],
            n_results=limit,
            where=where,
            include=["documents", "metadatas", "distances"],
        )

        documents = []
        if results["ids"] and results["ids"][0]:
            for i in range(len(results["ids"][0])):
                distance = results["distances"][0][i] if results["distances"] else 0
                documents.append({
                    "id": results["ids"][0][i],
                    "text": results["documents"][0][i] if results["documents"] else "",
                    "metadata": results["metadatas"][0][i] if results["metadatas"] else {},
                    "score": 1 - distance,
                })

        return documents

    async def delete_where(self, where: dict) -> None:
        """Delete every chunk matching a metadata filter."""
        await self._run("delete", where=where)

    async def count(self) -> int:
        """Get the total number of chunks in the collection."""
        return await self._run("count")

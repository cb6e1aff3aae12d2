"""
Document Ingestion

Chunks a document, embeds every chunk and stores the result in the vector
store under ids "<document_id>-<index>".

A single failure aborts the whole ingestion; nothing is retried. The caller
surfaces the error and the user can upload the document again.
"""

from typing import Optional

from .chunker import split_into_chunks
from .embeddings import Embedder
from .vectorstore import VectorStore
from ..utils.errors import InvalidRequest
from ..utils.logger import get_logger

logger = get_logger(__name__)


def chunk_id(document_id: str, index: int) -> str:
    return f"{document_id}-{index}"


class DocumentIngestor:
    """Write path: document text -> chunks -> embeddings -> vector store."""

    def __init__(
        self,
        embedder: Embedder,
        vector_store: VectorStore,
        chunk_size: int = 1000,
        chunk_overlap: int = 0,
    ):
        self.embedder = embedder
        self.vector_store = vector_store
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap

    async def ingest(self, document_id: str, text: str, name: Optional[str] = None) -> int:
        """
        Index a document.

        Chunks previously stored for the same document id are replaced.

        Returns:
            Number of chunks stored
        """
        if not document_id:
            raise InvalidRequest("File ID is required")
        if not text or not text.strip():
            raise InvalidRequest("Document content is empty")

        chunks = split_into_chunks(text, self.chunk_size, self.chunk_overlap)
        logger.info(
            f"Ingesting document {document_id}",
            extra={"extra_fields": {
                "content_length": len(text),
                "chunks": len(chunks),
            }},
        )

        embeddings = await self.embedder.create_embeddings(chunks)

        ids = []
        metadatas = []
        for index in range(len(chunks)):
            ids.append(chunk_id(document_id, index))
            metadata = {"document_id": document_id, "chunk_index": index}
            if name:
                metadata["document_name"] = name
            metadatas.append(metadata)

        # Stale chunks past the new count are pruned only after the upsert succeeds
        await self.vector_store.upsert(ids, chunks, embeddings, metadatas)
        await self.vector_store.delete_where({"$and": [
            {"document_id": document_id},
            {"chunk_index": {"$gte": len(chunks)}},
        ]})

        logger.info(
            f"Document {document_id} stored in {len(chunks)} chunks "
            f"(average {len(text) // len(chunks)} chars)"
        )
        return len(chunks)

    async def delete(self, document_id: str) -> None:
        """Remove every chunk of a document."""
        if not document_id:
            raise InvalidRequest("File ID is required")
        await self.vector_store.delete_where({"document_id": document_id})
        logger.info(f"Deleted chunks for document {document_id}")

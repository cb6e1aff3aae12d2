"""
Retrieval

Finds the chunks of one document that are relevant to a query. Only matches
with a similarity above the threshold are returned; an empty result means
"no relevant context" and is not an error.
"""

from typing import Optional

from .embeddings import Embedder
from .vectorstore import VectorStore
from ..utils.logger import get_logger

logger = get_logger(__name__)


class Retriever:
    """Read path: query -> embedding -> filtered similarity search."""

    def __init__(
        self,
        embedder: Embedder,
        vector_store: VectorStore,
        top_k: int = 5,
        min_score: float = 0.5,
    ):
        self.embedder = embedder
        self.vector_store = vector_store
        self.top_k = top_k
        self.min_score = min_score

    async def retrieve(self, query: str, document_id: str, top_k: Optional[int] = None) -> list[str]:
        """
        Get the text of the chunks of `document_id` most similar to `query`.

        Args:
            query: The user's question
            document_id: Document to search in
            top_k: Nearest neighbours to request (defaults to the configured value)

        Returns:
            Chunk texts scoring above the threshold, best first
        """
        limit = top_k or self.top_k
        query_embedding = await self.embedder.create_embedding(query)

        matches = await self.vector_store.query(
            query_embedding=query_embedding,
            limit=limit,
            where={"document_id": document_id},
        )

        results = [m["text"] for m in matches if m["score"] > self.min_score]

        logger.debug(
            f"Retrieved chunks for document {document_id}",
            extra={"extra_fields": {
                "matches": len(matches),
                "kept": len(results),
                "scores": ",".join(f"{m['score']:.2f}" for m in matches),
            }},
        )
        if not results:
            logger.info(f"No chunks above {self.min_score} for document {document_id}")

        return results

"""
Embeddings Module

Converts text to vector embeddings using OpenAI's text-embedding-3-small model
(1536 dimensions, matching the vector store collection).

Large documents are embedded in several requests: the API accepts at most
2048 inputs and about 300k tokens per call.
"""

from typing import Any, Optional

import openai
import tiktoken
from openai import AsyncOpenAI

from ..utils.errors import EmbeddingError
from ..utils.logger import get_logger

logger = get_logger(__name__)

MAX_BATCH_INPUTS = 2048
MAX_BATCH_TOKENS = 300_000

# A token spans at least one UTF-8 byte, so byte length bounds the token count
# and short texts never need the tokenizer.
EXACT_COUNT_MIN_BYTES = 256


def preprocess_text(text: str) -> str:
    """Collapse whitespace before embedding."""
    return " ".join(text.split())


class Embedder:
    """Thin wrapper around the OpenAI embeddings endpoint."""

    def __init__(
        self,
        client: AsyncOpenAI,
        model: str = "text-embedding-3-small",
        max_batch_inputs: int = MAX_BATCH_INPUTS,
        max_batch_tokens: int = MAX_BATCH_TOKENS,
    ):
        self.client = client
        self.model = model
        self.max_batch_inputs = max_batch_inputs
        self.max_batch_tokens = max_batch_tokens
        self._encoding: Optional[Any] = None

    def _get_encoding(self) -> Any:
        if self._encoding is None:
            try:
                self._encoding = tiktoken.encoding_for_model(self.model)
            except KeyError:
                self._encoding = tiktoken.get_encoding("cl100k_base")
        return self._encoding

    def count_tokens(self, text: str) -> int:
        """Token count of a text, or its byte length when that is already small."""
        size = len(text.encode("utf-8"))
        if size < EXACT_COUNT_MIN_BYTES:
            return size
        return len(self._get_encoding().encode(text))

    def make_batches(self, texts: list[str]) -> list[list[str]]:
        """Split texts into request-sized batches, preserving order."""
        batches: list[list[str]] = []
        current: list[str] = []
        current_tokens = 0

        for text in texts:
            tokens = self.count_tokens(text)
            if current and (
                len(current) >= self.max_batch_inputs
                or current_tokens + tokens > self.max_batch_tokens
            ):
                batches.append(current)
                current, current_tokens = [], 0
            current.append(text)
            current_tokens += tokens

        if current:
            batches.append(current)
        return batches

    async def create_embedding(self, text: str) -> list[float]:
        """
        Create embedding vector for a single text.

        Args:
            text: The text to embed

        Returns:
            List of floats representing the embedding vector
        """
        embeddings = await self.create_embeddings([text])
        return embeddings[0]

    async def create_embeddings(self, texts: list[str]) -> list[list[float]]:
        """
        Create embedding vectors for multiple texts.

        Args:
            texts: List of non-empty texts to embed

        Returns:
            List of embedding vectors, in input order
        """
        cleaned = [preprocess_text(t) for t in texts]
        if any(not t for t in cleaned):
            raise EmbeddingError("cannot embed empty text")

        batches = self.make_batches(cleaned)
        if len(batches) > 1:
            logger.info(f"Embedding {len(cleaned)} texts in {len(batches)} requests")

        embeddings: list[list[float]] = []
        for batch in batches:
            embeddings.extend(await self._embed_batch(batch))
        return embeddings

    async def _embed_batch(self, batch: list[str]) -> list[list[float]]:
        try:
            response = await self.client.embeddings.create(
                model=self.model,
                input=batch,
            )
        except openai.OpenAIError as e:
            logger.error(f"Embedding request failed: {e}")
            raise EmbeddingError(str(e)) from e

        # The API returns items tagged with their input index
        data = sorted(response.data, key=lambda item: item.index)
        return [item.embedding for item in data]

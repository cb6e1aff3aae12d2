"""
Service Wiring

Builds every client once at process start and hands the same instances to
the handlers. Tests build a Services with fakes instead.
"""

from dataclasses import dataclass
from typing import Optional
from openai import AsyncOpenAI

from .agent.core import ChatHandler
from .config import Settings
from .rag.embeddings import Embedder
from .rag.ingestion import DocumentIngestor
from .rag.retrieval import Retriever
from .rag.vectorstore import VectorStore, create_chroma_client
from .slack.adapter import SlackStatusAdapter
from .utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class Services:
    """The application's long-lived collaborators."""

    vector_store: VectorStore
    ingestor: DocumentIngestor
    retriever: Retriever
    slack: SlackStatusAdapter
    chat: ChatHandler
    openai_client: Optional[AsyncOpenAI] = None

    async def close(self) -> None:
        if self.openai_client is not None:
            await self.openai_client.close()


def build_services(
    settings: Settings,
    openai_client: Optional[AsyncOpenAI] = None,
    chroma_client=None,
    slack: Optional[SlackStatusAdapter] = None,
) -> Services:
    """
    Construct the clients and handlers.

    Any client passed in is used as-is; the rest are built from settings.

    Raises:
        ConfigurationMissing: if OPENAI_API_KEY or the vector store settings are missing
    """
    if openai_client is None:
        openai_client = AsyncOpenAI(api_key=settings.require("openai_api_key", "OPENAI_API_KEY"))
    if chroma_client is None:
        chroma_client = create_chroma_client(settings)
    if slack is None:
        slack = SlackStatusAdapter.from_token(settings.slack_bot_token, settings.status_bot_name)
        if not slack.is_configured:
            logger.warning("SLACK_BOT_TOKEN is not set; Slack status tools will report missing credentials")

    embedder = Embedder(openai_client, settings.embedding_model)
    vector_store = VectorStore(chroma_client, settings.collection_name, settings.embedding_dimension)
    retriever = Retriever(embedder, vector_store, top_k=settings.top_k, min_score=settings.min_score)

    return Services(
        vector_store=vector_store,
        ingestor=DocumentIngestor(
            embedder,
            vector_store,
            chunk_size=settings.chunk_size,
            chunk_overlap=settings.chunk_overlap,
        ),
        retriever=retriever,
        slack=slack,
        chat=ChatHandler(
            openai_client,
            retriever,
            slack,
            model=settings.chat_model,
            temperature=settings.chat_temperature,
            max_tokens=settings.chat_max_tokens,
        ),
        openai_client=openai_client,
    )

"""
Configuration

Loads settings from the environment (and a .env file, if present).

Required values are checked when the client that needs them is built:
- OPENAI_API_KEY and the vector store settings at startup
- SLACK_BOT_TOKEN on first Slack use
A missing value raises ConfigurationMissing naming the variable.
"""

import os
from dataclasses import dataclass
from typing import Optional
from dotenv import load_dotenv

from .utils.errors import ConfigurationMissing

load_dotenv()

# text-embedding-3-small dimension
EMBEDDING_DIMENSION = 1536


def _get_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError:
        raise ConfigurationMissing(name, f"expected an integer, got {value!r}")


def _get_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    try:
        return float(value)
    except ValueError:
        raise ConfigurationMissing(name, f"expected a number, got {value!r}")


@dataclass
class Settings:
    """Process-wide settings, read once at startup."""

    # OpenAI
    openai_api_key: Optional[str] = None
    chat_model: str = "gpt-4o-mini"
    embedding_model: str = "text-embedding-3-small"
    chat_temperature: float = 0.7
    chat_max_tokens: int = 500

    # Vector store (Chroma)
    vector_db_path: Optional[str] = None
    chroma_api_key: Optional[str] = None
    chroma_tenant: Optional[str] = None
    chroma_database: Optional[str] = None
    collection_name: str = "documents"
    embedding_dimension: int = EMBEDDING_DIMENSION

    # RAG
    chunk_size: int = 1000
    chunk_overlap: int = 0
    top_k: int = 5
    min_score: float = 0.5

    # Slack
    slack_bot_token: Optional[str] = None
    status_bot_name: str = "Status Bot"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables."""
        return cls(
            openai_api_key=os.getenv("OPENAI_API_KEY") or None,
            chat_model=os.getenv("DEFAULT_MODEL", "gpt-4o-mini"),
            embedding_model=os.getenv("RAG_EMBEDDING_MODEL", "text-embedding-3-small"),
            chat_temperature=_get_float("CHAT_TEMPERATURE", 0.7),
            chat_max_tokens=_get_int("CHAT_MAX_TOKENS", 500),
            vector_db_path=os.getenv("RAG_VECTOR_DB_PATH") or None,
            chroma_api_key=os.getenv("CHROMA_API_KEY") or None,
            chroma_tenant=os.getenv("CHROMA_TENANT") or None,
            chroma_database=os.getenv("CHROMA_DATABASE") or None,
            collection_name=os.getenv("CHROMA_COLLECTION", "documents"),
            chunk_size=_get_int("RAG_CHUNK_SIZE", 1000),
            chunk_overlap=_get_int("RAG_CHUNK_OVERLAP", 0),
            top_k=_get_int("RAG_TOP_K", 5),
            min_score=_get_float("RAG_MIN_SCORE", 0.5),
            slack_bot_token=os.getenv("SLACK_BOT_TOKEN") or None,
            status_bot_name=os.getenv("SLACK_STATUS_BOT_NAME", "Status Bot"),
            host=os.getenv("HOST", "0.0.0.0"),
            port=_get_int("PORT", 8000),
        )

    def require(self, attribute: str, variable: str) -> str:
        """Return a required setting or raise ConfigurationMissing naming its variable."""
        value = getattr(self, attribute)
        if not value:
            raise ConfigurationMissing(variable)
        return value

    def require_vector_store(self) -> None:
        """Check that either a local path or hosted Chroma credentials are configured."""
        if self.vector_db_path:
            return
        self.require("chroma_api_key", "CHROMA_API_KEY")
        self.require("chroma_tenant", "CHROMA_TENANT")
        self.require("chroma_database", "CHROMA_DATABASE")
